from __future__ import annotations

"""
Account model.

An account is an organiser identity (email + password).  Role and
status are plain enums — there is no permission table; the only
privilege split is account_owner vs admin.
Accounts are never hard-deleted, only deactivated.
"""

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from boardgame_event.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from boardgame_event.models.session import Session


class AccountRole(str, enum.Enum):
    ACCOUNT_OWNER = "account_owner"
    ADMIN = "admin"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Account(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "accounts"

    # Always stored lowercase, see AccountService.register
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[AccountRole] = mapped_column(
        Enum(AccountRole, name="account_role", values_callable=_enum_values),
        default=AccountRole.ACCOUNT_OWNER,
        nullable=False,
    )
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, name="account_status", values_callable=_enum_values),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )

    # ── Relationships ────────────────────────────────────────────────
    sessions: Mapped[list["Session"]] = relationship(  # noqa: F821
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def is_deactivated(self) -> bool:
        return self.status == AccountStatus.DEACTIVATED

    def __repr__(self) -> str:
        return f"<Account {self.email} [{self.role.value}/{self.status.value}]>"
