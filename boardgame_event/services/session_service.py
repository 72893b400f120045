"""
Session service — account tokens backed by the server-side session table.

Handles:
- Creating a session row and signing its account token (login)
- Validating a token: signature & expiry first, then the session row
- Listing an account's sessions
- Deleting single sessions (logout), all sessions (deactivation, admin
  force-logout / password reset) and all-but-one (password change)

A token is only as good as its session row — delete the row and the
token is dead, no matter how far away its ``exp`` is.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from jose import JWTError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.core.errors import AccountErrorCode
from boardgame_event.core.result import Err, Ok, Result
from boardgame_event.core.security import decode_token, encode_token
from boardgame_event.models.session import Session

logger = logging.getLogger(__name__)

ACCOUNT_TOKEN_EXPIRE_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class TokenPayload:
    account_id: uuid.UUID
    session_id: uuid.UUID


class SessionService:
    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    # ── Issue ────────────────────────────────────────────────────────

    async def create_session(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> str:
        """Insert a session row and return the signed account token."""
        session = Session(
            id=uuid.uuid4(),
            account_id=account_id,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        db.add(session)
        await db.flush()

        logger.info("Session %s created for account %s", session.id, account_id)
        return encode_token(
            {"accountId": str(account_id), "sessionId": str(session.id)},
            secret=self._secret,
            algorithm=self._algorithm,
            expires_in=ACCOUNT_TOKEN_EXPIRE_SECONDS,
        )

    # ── Validate ─────────────────────────────────────────────────────

    def _decode(self, token: str) -> TokenPayload | None:
        try:
            claims = decode_token(token, secret=self._secret, algorithm=self._algorithm)
            return TokenPayload(
                account_id=uuid.UUID(str(claims["accountId"])),
                session_id=uuid.UUID(str(claims["sessionId"])),
            )
        except (JWTError, KeyError, ValueError):
            return None

    async def validate_token(self, db: AsyncSession, token: str) -> TokenPayload | None:
        """
        Return the token payload, or None if the token is unusable.

        Checks, in order:
          1. JWT signature & expiry (any failure → None).
          2. The referenced session row still exists and belongs to the
             account named in the token.

        On success ``last_used_at`` is bumped (best-effort — committed
        with the request).  Database errors are NOT turned into None.
        """
        payload = self._decode(token)
        if payload is None:
            return None

        session = await db.get(Session, payload.session_id)
        if session is None or session.account_id != payload.account_id:
            return None

        await db.execute(
            update(Session)
            .where(Session.id == payload.session_id)
            .values(last_used_at=datetime.now(timezone.utc))
        )
        return payload

    # ── Query ────────────────────────────────────────────────────────

    async def get_sessions_for_account(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
    ) -> list[Session]:
        """All sessions of an account, most recently used first."""
        stmt = (
            select(Session)
            .where(Session.account_id == account_id)
            .order_by(Session.last_used_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ── Revoke ───────────────────────────────────────────────────────

    async def delete_session(
        self,
        db: AsyncSession,
        session_id: uuid.UUID,
        account_id: uuid.UUID,
    ) -> Result[None]:
        """Delete one session — only if it belongs to ``account_id``."""
        session = await db.get(Session, session_id)
        if session is None:
            return Err.of(AccountErrorCode.SESSION_NOT_FOUND, 404)
        if session.account_id != account_id:
            return Err.of(AccountErrorCode.NOT_AUTHORIZED, 403)

        await db.execute(delete(Session).where(Session.id == session_id))
        await db.flush()
        return Ok(None)

    async def delete_all_sessions(self, db: AsyncSession, account_id: uuid.UUID) -> int:
        """
        Delete every session of an account.

        Returns the number of sessions removed.
        Used by deactivation, admin force-logout and admin password reset.
        """
        result = await db.execute(delete(Session).where(Session.account_id == account_id))
        await db.flush()
        logger.info("Deleted %d session(s) for account %s", result.rowcount, account_id)
        return result.rowcount

    async def delete_all_sessions_except(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        keep_session_id: uuid.UUID,
    ) -> int:
        """Delete every session of an account but ``keep_session_id`` (password change)."""
        result = await db.execute(
            delete(Session).where(
                Session.account_id == account_id,
                Session.id != keep_session_id,
            )
        )
        await db.flush()
        logger.info(
            "Deleted %d other session(s) for account %s",
            result.rowcount,
            account_id,
        )
        return result.rowcount
