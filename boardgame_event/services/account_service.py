"""
Account service — registration, credentials & admin account management.

Every method that can fail for a *user* reason returns a Result
(``Ok`` / ``Err``); controllers turn an ``Err`` into the HTTP response.
Session bookkeeping (which sessions die on password change etc.) is
the caller's job — see the account controller.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boardgame_event.core.errors import AccountErrorCode
from boardgame_event.core.result import Err, Ok, Result
from boardgame_event.core.security import (
    BCRYPT_COST_FACTOR,
    hash_password,
    validate_email,
    validate_password,
    verify_password,
)
from boardgame_event.models.account import Account, AccountRole, AccountStatus


class AccountService:
    def __init__(self, bcrypt_rounds: int = BCRYPT_COST_FACTOR) -> None:
        self._bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        return hash_password(password, self._bcrypt_rounds)

    # ── Lookups ──────────────────────────────────────────────────────

    async def get_by_id(self, db: AsyncSession, account_id: uuid.UUID) -> Account | None:
        return await db.get(Account, account_id)

    async def get_by_email(self, db: AsyncSession, email: str) -> Account | None:
        stmt = select(Account).where(Account.email == email.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self, db: AsyncSession) -> list[Account]:
        stmt = select(Account).order_by(Account.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ── Registration & login ─────────────────────────────────────────

    async def register(self, db: AsyncSession, email: str, password: str) -> Result[Account]:
        """Create an active account_owner.  Email is stored lowercase."""
        email = email.strip()
        error = validate_email(email) or validate_password(password)
        if error is not None:
            return error

        if await self.get_by_email(db, email) is not None:
            return Err.of(AccountErrorCode.EMAIL_EXISTS, 409)

        account = Account(
            id=uuid.uuid4(),
            email=email.lower(),
            password_hash=self.hash_password(password),
            role=AccountRole.ACCOUNT_OWNER,
            status=AccountStatus.ACTIVE,
        )
        db.add(account)
        await db.flush()
        return Ok(account)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Result[Account]:
        """
        Check credentials.

        The deactivation check runs only after the password matched, so
        a wrong password never reveals that an account is deactivated.
        """
        account = await self.get_by_email(db, email)
        if account is None or not verify_password(password, account.password_hash):
            return Err.of(AccountErrorCode.INVALID_CREDENTIALS, 401)

        if account.is_deactivated:
            return Err.of(AccountErrorCode.ACCOUNT_DEACTIVATED, 403)

        return Ok(account)

    # ── Self-service ─────────────────────────────────────────────────

    async def change_password(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> Result[Account]:
        account = await self.get_by_id(db, account_id)
        if account is None:
            return Err.of(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

        if not verify_password(current_password, account.password_hash):
            return Err.of(AccountErrorCode.WRONG_PASSWORD, 401)

        error = validate_password(new_password)
        if error is not None:
            return error

        account.password_hash = self.hash_password(new_password)
        await db.flush()
        return Ok(account)

    async def deactivate(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        password: str,
    ) -> Result[Account]:
        """Self-deactivation — requires the password again."""
        account = await self.get_by_id(db, account_id)
        if account is None:
            return Err.of(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

        if not verify_password(password, account.password_hash):
            return Err.of(AccountErrorCode.WRONG_PASSWORD, 401)

        account.status = AccountStatus.DEACTIVATED
        await db.flush()
        return Ok(account)

    # ── Admin actions ────────────────────────────────────────────────

    async def promote_to_admin(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        promoter_id: uuid.UUID,
    ) -> Result[Account]:
        promoter = await self.get_by_id(db, promoter_id)
        if promoter is None or not promoter.is_admin:
            return Err.of(AccountErrorCode.NOT_AUTHORIZED, 403)

        return await self.set_role(db, account_id, AccountRole.ADMIN)

    async def set_role(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        role: AccountRole,
    ) -> Result[Account]:
        account = await self.get_by_id(db, account_id)
        if account is None:
            return Err.of(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

        account.role = role
        await db.flush()
        return Ok(account)

    async def set_status(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        status: AccountStatus,
        actor_id: uuid.UUID,
    ) -> Result[Account]:
        if account_id == actor_id and status == AccountStatus.DEACTIVATED:
            return Err.of(AccountErrorCode.SELF_DEACTIVATION, 400)

        account = await self.get_by_id(db, account_id)
        if account is None:
            return Err.of(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

        account.status = status
        await db.flush()
        return Ok(account)

    async def reset_password(
        self,
        db: AsyncSession,
        account_id: uuid.UUID,
        new_password: str,
    ) -> Result[Account]:
        """Admin reset — no current password needed, rules still apply."""
        account = await self.get_by_id(db, account_id)
        if account is None:
            return Err.of(AccountErrorCode.ACCOUNT_NOT_FOUND, 404)

        error = validate_password(new_password)
        if error is not None:
            return error

        account.password_hash = self.hash_password(new_password)
        await db.flush()
        return Ok(account)
