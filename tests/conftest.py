import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from boardgame_event.core.config import Settings
from boardgame_event.core.database import get_db
from boardgame_event.main import create_app
from boardgame_event.models import Account, AccountRole, Base
from boardgame_event.services import Services

# In-memory SQLite, one shared connection per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Security: test-only secret. Production uses a real secret from env.
TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"
TEST_EVENT_PASSWORD = "spieleabend2024"
TEST_PASSWORD = "geheim123"

# Cheapest cost factor bcrypt accepts
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        SECRET_KEY=TEST_SECRET,
        BCRYPT_ROUNDS=TEST_BCRYPT_ROUNDS,
        EVENT_PASSWORD=TEST_EVENT_PASSWORD,
        BGG_SCRAPE_ENABLED=False,
        BGG_IMAGE_CACHE_DIR=str(tmp_path / "bgg-images"),
    )


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest.fixture
def app(test_settings: Settings, session_factory: async_sessionmaker[AsyncSession]):
    """App built from test settings, with ``get_db`` bound to the test database."""
    application = create_app(test_settings)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def services(app) -> Services:
    return app.state.services


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def default_event_id(
    services: Services,
    session_factory: async_sessionmaker[AsyncSession],
) -> uuid.UUID:
    async with session_factory() as session:
        event_id = await services.events.ensure_default_event(session)
        await session.commit()
    return event_id


@pytest.fixture
def register_and_login(client: AsyncClient) -> Callable[..., Awaitable[str]]:
    """Register an account through the API and return a fresh account token."""

    async def _register_and_login(email: str, password: str = TEST_PASSWORD) -> str:
        response = await client.post(
            "/api/accounts/register", json={"email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return await login(client, email, password)

    return _register_and_login


@pytest.fixture
def make_admin(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[str], Awaitable[None]]:
    """Flip an existing account to admin directly in the database."""

    async def _make_admin(email: str) -> None:
        async with session_factory() as session:
            result = await session.execute(select(Account).where(Account.email == email.lower()))
            result.scalar_one().role = AccountRole.ADMIN
            await session.commit()

    return _make_admin


async def login(client: AsyncClient, email: str, password: str = TEST_PASSWORD) -> str:
    response = await client.post(
        "/api/accounts/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
