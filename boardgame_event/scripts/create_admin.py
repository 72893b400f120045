"""
One-time bootstrap script — creates the first ADMIN account and the
default event.

Usage:
    uv run python -m boardgame_event.scripts.create_admin

You only need this ONCE. After the first admin exists, other accounts
register themselves and admins promote them. Re-running it with the
credentials of an existing account promotes that account.
"""

import asyncio
import getpass

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from boardgame_event.core.config import settings
from boardgame_event.core.result import Err, Ok
from boardgame_event.models.account import AccountRole
from boardgame_event.services.account_service import AccountService
from boardgame_event.services.event_service import EventService


async def create_admin() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    accounts = AccountService(bcrypt_rounds=settings.BCRYPT_ROUNDS)
    events = EventService(
        event_name=settings.EVENT_NAME,
        event_password=settings.EVENT_PASSWORD,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )

    async with session_factory() as session:
        # ── Collect input ────────────────────────────────────────────
        print("\n🎲  Brettspiel-Event — First Admin Setup\n")
        email = input("  Admin email: ").strip()
        password = getpass.getpass("  Password:    ")
        confirm = getpass.getpass("  Confirm:     ")

        if password != confirm:
            print("\n❌  Passwords do not match.")
            await engine.dispose()
            return

        # ── Existing account: promote it if the password matches ─────
        existing = await accounts.authenticate(session, email, password)
        if isinstance(existing, Ok):
            admin = existing.value
            print(f"\n   Account {admin.email} already exists, promoting it.")
        else:
            # ── New account (same rules as /register) ──────────────
            result = await accounts.register(session, email, password)
            if isinstance(result, Err):
                print(f"\n❌  {result.message} ({result.code.value})")
                await engine.dispose()
                return
            admin = result.value

        admin.role = AccountRole.ADMIN

        # ── Default event ────────────────────────────────────────────
        event_id = await events.ensure_default_event(session, owner_account_id=admin.id)
        await session.commit()

        print("\n✅  Admin account ready!")
        print(f"    ID:    {admin.id}")
        print(f"    Email: {admin.email}")
        print(f"    Event: {event_id}")
        print("\n   You can now log in via POST /api/accounts/login\n")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_admin())
