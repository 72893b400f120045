"""
Models package — import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for `create_all` / Alembic).
"""

from boardgame_event.models.base import Base, CreatedAtMixin, TimestampMixin, UUIDPrimaryKeyMixin
from boardgame_event.models.account import Account, AccountRole, AccountStatus
from boardgame_event.models.session import Session
from boardgame_event.models.event import Event

__all__ = [
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Account",
    "AccountRole",
    "AccountStatus",
    "Session",
    "Event",
]
