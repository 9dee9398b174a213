"""Test configuration and fixtures.

Test setup:
1. Environment comes from .env.test (in-memory SQLite through aiosqlite)
2. Each test gets a fresh database schema on its own engine
3. The FastAPI session dependency is overridden with the test session
4. Token tests run against a frozen, advanceable clock
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load test environment variables before the application reads its settings
test_env_path = Path(__file__).parent.parent / ".env.test"
load_dotenv(test_env_path, override=True)

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.database.base import Base  # noqa: E402
from src.database.dependencies import get_db_session  # noqa: E402
from src.features.auth.dependencies import get_token_codec  # noqa: E402
from src.features.auth.jwt_utils import IdentityClaim, TokenCodec  # noqa: E402
from src.features.auth.service import TokenService  # noqa: E402
from src.features.auth.store import RefreshTokenStore  # noqa: E402
from src.features.user.models import User  # noqa: E402
from src.main import app  # noqa: E402


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# Database Setup - Function Scope (fresh schema per test)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory database shared by every connection of the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as async_session:
        yield async_session


# FastAPI Client & Dependency Overrides


@pytest_asyncio.fixture(autouse=True)
async def override_get_db_session(session: AsyncSession):
    """Make endpoints use the same session as the test."""

    async def _get_test_session():
        yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Unauthenticated HTTP test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Test User Factories


@pytest_asyncio.fixture
async def make_user(session: AsyncSession):
    """Factory fixture to create users.

    Usage:
        user = await make_user()
        user = await make_user(email="u@example.com")
    """
    counter = 0

    async def _factory(email=None, username=None, **kwargs) -> User:
        nonlocal counter
        counter += 1

        user = User(
            email=email or f"testuser{counter}@example.com",
            username=username or f"testuser{counter}",
            **kwargs,
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user

    yield _factory


@pytest.fixture
def auth_headers():
    """Build an Authorization header carrying a valid access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = get_token_codec().mint(IdentityClaim(user_id=user.id, email=user.email), timedelta(minutes=5))
        return {"Authorization": f"Bearer {token}"}

    return _headers


# Token fixtures


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def token_secret() -> str:
    return "unit-test-secret-key-long-enough-for-hs256"


@pytest.fixture
def codec(token_secret: str, clock: FrozenClock) -> TokenCodec:
    return TokenCodec(token_secret, "HS256", clock=clock)


@pytest.fixture
def token_service(codec: TokenCodec, session: AsyncSession, clock: FrozenClock) -> TokenService:
    return TokenService(
        codec=codec,
        store=RefreshTokenStore(session),
        access_token_lifetime=timedelta(minutes=5),
        refresh_token_lifetime=timedelta(minutes=30),
        clock=clock,
    )
