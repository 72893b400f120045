from __future__ import annotations

"""
Session model — server-side login registry.

One row per login (multi-device login is allowed).  The row's existence
is the source of truth for token validity: deleting it revokes every
token that references it, whatever the token's own expiry says.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from boardgame_event.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from boardgame_event.models.account import Account


class Session(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "sessions"

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_used_at: Mapped[datetime] = mapped_column(default=utcnow, index=True)

    # ── Relationships ────────────────────────────────────────────────
    account: Mapped["Account"] = relationship(  # noqa: F821
        back_populates="sessions",
    )

    def __repr__(self) -> str:
        return f"<Session {self.id} account={self.account_id}>"
