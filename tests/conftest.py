"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database. Requests made through
``client`` each open a fresh session on it, the same way production hands
out one session per request.
"""

import os

# Must be set before app.core.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "coachfit-test-secret-key-0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers every table on Base.metadata
from app.db.async_session import get_async_db
from app.db.base_class import Base
from app.main import app
from app.models.user import User
from app.services.async_auth import AsyncAuthService
from tests.utils_jwt import TEST_PASSWORD, auth_header_for


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(async_engine):
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_async_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides = {}


@pytest_asyncio.fixture
async def make_user(session_factory):
    """Factory inserting a user and returning the committed row."""
    counter = {"n": 0}

    async def _make_user(
        role: str = "client",
        name: Optional[str] = None,
        email: Optional[str] = None,
        coach_id: Optional[int] = None,
        status: str = "active",
        password: str = TEST_PASSWORD,
    ) -> User:
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                email=email or f"{role}{counter['n']}@example.com",
                password_hash=AsyncAuthService.get_password_hash(password),
                name=name or f"{role.capitalize()} {counter['n']}",
                role=role,
                status=status,
                coach_id=coach_id,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest_asyncio.fixture
async def coach(make_user):
    return await make_user("coach", name="Casey Coach")


@pytest_asyncio.fixture
async def other_coach(make_user):
    return await make_user("coach", name="Morgan Coach")


@pytest_asyncio.fixture
async def client_a(make_user, coach):
    """Client assigned to ``coach``."""
    return await make_user("client", name="Alex Client", coach_id=coach.id)


@pytest_asyncio.fixture
async def client_b(make_user):
    """Client with no coaching relationship."""
    return await make_user("client", name="Blair Client")


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin", name="Ada Admin")


@pytest.fixture
def headers():
    """Turn a user row into bearer auth headers."""
    return auth_header_for
