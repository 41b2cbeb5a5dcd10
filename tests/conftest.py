"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``chirp`` import so the settings
object never reads a developer's .env file.

Provides:
- An in-memory SQLite engine (aiosqlite + StaticPool) with tables created
- A fake directory and a fake session verifier
- A service container and FastAPI app wired around those fakes
- An httpx AsyncClient talking to the app through ASGITransport
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("CLERK_SECRET_KEY", "sk_test_123")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_CREATE_TABLES", "true")
os.environ.setdefault("APP_RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Sequence
from unittest.mock import Mock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from chirp.adapters.directory.base import AbstractDirectoryClient, DirectoryUser
from chirp.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from chirp.adapters.session.base import AbstractSessionVerifier
from chirp.core.app_factory import create_app
from chirp.core.container import ServiceContainer
from chirp.core.errors import AuthenticationAppError
from chirp.models.base import Base, build_session_factory
from chirp.models.post import Post

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeDirectory(AbstractDirectoryClient):
    """In-memory directory recording every lookup it serves."""

    def __init__(self, users: Sequence[DirectoryUser] = ()) -> None:
        self.users = {user.id: user for user in users}
        self.calls: list[list[str]] = []
        self.closed = False

    def add(self, user_id: str, username: str | None, picture: str | None = None) -> None:
        self.users[user_id] = DirectoryUser(
            id=user_id,
            username=username,
            profile_image_url=picture or f"https://img.example/{user_id}.png",
        )

    async def lookup_by_ids(self, ids, *, limit: int = 100) -> list[DirectoryUser]:
        self.calls.append(list(ids))
        return [self.users[i] for i in ids if i in self.users][:limit]

    async def aclose(self) -> None:
        self.closed = True


class FakeSessionVerifier(AbstractSessionVerifier):
    """Accepts tokens of the form ``session-<user id>``."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def verify(self, token: str) -> str:
        self.calls.append(token)
        if not token.startswith("session-"):
            raise AuthenticationAppError(
                code="invalid_session_token",
                message="Invalid session token",
            )
        return token.removeprefix("session-")


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_000_000.0)


@pytest.fixture
def limiter(clock: Mock) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def session_verifier() -> FakeSessionVerifier:
    return FakeSessionVerifier()


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    async with build_session_factory(async_engine)() as session:
        yield session


@pytest_asyncio.fixture
async def seed_posts(db_session: AsyncSession):
    """Insert posts with explicit, strictly increasing timestamps."""

    async def _seed(author_ids: Sequence[str], *, content: str = "🎉") -> list[Post]:
        rows = [
            Post(
                author_id=author_id,
                content=content,
                created_at=BASE_TIME + timedelta(minutes=index),
            )
            for index, author_id in enumerate(author_ids)
        ]
        db_session.add_all(rows)
        await db_session.commit()
        return rows

    return _seed


@pytest.fixture
def container(async_engine, directory, session_verifier, limiter) -> ServiceContainer:
    return ServiceContainer(
        engine=async_engine,
        session_factory=build_session_factory(async_engine),
        directory=directory,
        session_verifier=session_verifier,
        limiter=limiter,
    )


@pytest.fixture
def app(container: ServiceContainer):
    return create_app(container=container)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
