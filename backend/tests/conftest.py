"""Pytest configuration and fixtures for backend tests.

Every test gets a fresh in-memory SQLite database. Token codecs are built
on a controllable clock so expiry can be exercised without sleeping.
"""

import os
import time
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
TEST_AUTH_SECRET = "auth-" + "a" * 59
TEST_INVITE_SECRET = "invite-" + "b" * 57

os.environ["JWT_SECRET_AUTH"] = TEST_AUTH_SECRET
os.environ["JWT_SECRET_INVITE"] = TEST_INVITE_SECRET
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BASE_URL"] = "https://spectrum.test"
os.environ["LOG_FORMAT"] = "dev"
# Cheap Argon2 parameters keep the suite fast
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "1024"
os.environ["PASSWORD_HASH_PARALLELISM"] = "1"

TEST_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float | None = None):
        self.now = float(int(start if start is not None else time.time()))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# --- Clock and codecs ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codecs(clock):
    """Auth and invite codecs sharing the test clock."""
    from app.services.tokens import build_token_codecs

    return build_token_codecs(TEST_AUTH_SECRET, TEST_INVITE_SECRET, clock=clock)


# --- Login throttling reset ---


def _reset_login_rate_limiter() -> None:
    from app.api.auth import _login_attempts

    _login_attempts.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter(request):
    """Clear failed-login bookkeeping around each test.

    Tests marked with pytest.mark.skip_rate_limiter_reset skip this
    (config tests reload modules and must not import the app).
    """
    if request.node.get_closest_marker("skip_rate_limiter_reset"):
        yield
        return

    _reset_login_rate_limiter()
    yield
    _reset_login_rate_limiter()


# --- Database Fixtures ---


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    import app.models  # noqa: F401  registers every table on Base.metadata
    from app.core.database import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession, codecs) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the test database and test clock."""
    from app.api.auth import get_token_codecs
    from app.core.database import get_db
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codecs] = lambda: codecs

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test users."""
    from app.models.user import User
    from app.services.auth import hash_password

    counter = {"n": 0}

    async def _create_user(
        username: str | None = None,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        role: str | None = "member",
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            username=username or f"user{n}",
            email=email or f"user{n}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def chat_factory(db_session):
    """Factory for creating chats through the chat service."""
    from app.services.chat import ChatService

    async def _create_chat(creator, *members, name: str | None = None):
        return await ChatService(db_session).create(creator.id, name, [m.id for m in members])

    return _create_chat


@pytest.fixture
def event_factory(db_session):
    """Factory for creating events through the event service."""
    from datetime import UTC, datetime, timedelta

    from app.services.event import EventService

    async def _create_event(owner, title: str = "Board game night", **kwargs):
        kwargs.setdefault("date", datetime.now(UTC) + timedelta(days=7))
        return await EventService(db_session).create(owner.id, title=title, **kwargs)

    return _create_event


# --- Auth Helpers ---


@pytest.fixture
def auth_headers(codecs):
    """Build bearer headers for a user, minted with the test codecs."""
    from app.services.auth import issue_auth_token

    def _headers(user) -> dict[str, str]:
        issued = issue_auth_token(codecs.auth, user)
        return {"Authorization": f"Bearer {issued.token}"}

    return _headers


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Mark tests that touch the database as 'integration', the rest as 'unit'."""
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
