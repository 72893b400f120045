"""
Event service — the event a guest unlocks with the shared password.

Handles:
- Creating the default event on first start (password from settings)
- Resolving the default event id (cached after the first lookup)
- Checking an event password
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.core.security import BCRYPT_COST_FACTOR, hash_password, verify_password
from boardgame_event.models.event import Event

logger = logging.getLogger(__name__)


class DefaultEventMissingError(Exception):
    """No event is flagged as default yet (run the bootstrap script)."""


class EventService:
    def __init__(
        self,
        event_name: str,
        event_password: str,
        bcrypt_rounds: int = BCRYPT_COST_FACTOR,
    ) -> None:
        self._event_name = event_name
        self._event_password = event_password
        self._bcrypt_rounds = bcrypt_rounds
        self._default_event_id: uuid.UUID | None = None

    async def _find_default(self, db: AsyncSession) -> Event | None:
        stmt = select(Event).where(Event.is_default == True).limit(1)  # noqa: E712
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_default_event(
        self,
        db: AsyncSession,
        owner_account_id: uuid.UUID | None = None,
    ) -> uuid.UUID:
        """Return the default event id, creating the event if needed."""
        existing = await self._find_default(db)
        if existing is not None:
            self._default_event_id = existing.id
            return existing.id

        event = Event(
            id=uuid.uuid4(),
            name=self._event_name,
            password_hash=hash_password(self._event_password, self._bcrypt_rounds),
            is_default=True,
            owner_account_id=owner_account_id,
        )
        db.add(event)
        await db.flush()
        logger.info("Created default event %s (%s)", event.id, event.name)

        self._default_event_id = event.id
        return event.id

    async def get_default_event_id(self, db: AsyncSession) -> uuid.UUID:
        if self._default_event_id is not None:
            return self._default_event_id

        existing = await self._find_default(db)
        if existing is None:
            raise DefaultEventMissingError("Default event not initialized.")

        self._default_event_id = existing.id
        return existing.id

    async def get_event_by_id(self, db: AsyncSession, event_id: uuid.UUID) -> Event | None:
        return await db.get(Event, event_id)

    async def verify_event_password(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        password: str,
    ) -> bool:
        event = await self.get_event_by_id(db, event_id)
        if event is None:
            return False
        return verify_password(password, event.password_hash)
