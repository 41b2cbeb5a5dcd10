"""Process-wide service handles and the FastAPI dependencies that hand them out.

The container is built once by the application factory and stored on
``app.state``. Request handlers never reach for module globals; they
declare what they need through ``Depends`` and tests swap the container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chirp.adapters.directory.base import AbstractDirectoryClient
from chirp.adapters.directory.clerk import ClerkDirectoryClient
from chirp.adapters.rate_limit.base import AbstractRateLimiter
from chirp.adapters.session.base import AbstractSessionVerifier
from chirp.adapters.session.clerk import ClerkSessionVerifier
from chirp.core.config import Settings
from chirp.core.errors import ValidationAppError
from chirp.core.rate_limit import build_rate_limiter
from chirp.models.base import build_engine, build_session_factory, create_tables
from chirp.repositories.post_repository import PostRepository
from chirp.services.post_creator import PostCreator
from chirp.services.post_lister import PostLister

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived clients shared by every request."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    directory: AbstractDirectoryClient
    session_verifier: AbstractSessionVerifier
    limiter: AbstractRateLimiter | None
    list_limit: int = 100
    auto_create_tables: bool = False

    async def startup(self) -> None:
        if self.auto_create_tables:
            await create_tables(self.engine)

    async def aclose(self) -> None:
        """Close network clients and dispose of the connection pool."""
        await self.directory.aclose()
        if self.limiter is not None:
            await self.limiter.aclose()
        await self.engine.dispose()


def build_container(cfg: Settings) -> ServiceContainer:
    """Construct every client from settings.

    Nothing connects here; engines, pools and the JWKS client are lazy.

    Raises:
        ValidationAppError: If the identity provider secret is missing.
    """
    if not cfg.clerk.secret_key:
        raise ValidationAppError(
            code="directory_missing_secret_key",
            message="Directory lookups require the CLERK_SECRET_KEY environment variable",
        )

    engine = build_engine(cfg.database)
    api_url = cfg.clerk.api_url.rstrip("/")

    container = ServiceContainer(
        engine=engine,
        session_factory=build_session_factory(engine),
        directory=ClerkDirectoryClient(
            secret_key=cfg.clerk.secret_key,
            base_url=api_url,
            timeout_seconds=cfg.clerk.timeout_seconds,
        ),
        session_verifier=ClerkSessionVerifier(
            jwks_url=cfg.clerk.jwks_url or f"{api_url}/jwks",
            # Only the Backend API JWKS endpoint needs this
            jwks_headers={"Authorization": f"Bearer {cfg.clerk.secret_key}"},
            authorized_parties=cfg.clerk.authorized_party_list,
            leeway_seconds=cfg.clerk.leeway_seconds,
        ),
        limiter=build_rate_limiter(cfg),
        list_limit=cfg.app.list_limit,
        auto_create_tables=cfg.database.create_tables,
    )
    logger.info(
        "container.built",
        extra={
            "database_dialect": engine.dialect.name,
            "rate_limit_enabled": container.limiter is not None,
        },
    )
    return container


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def get_db_session(
    container: ServiceContainer = Depends(get_container),
) -> AsyncIterator[AsyncSession]:
    """Yield a session for the duration of one request."""
    async with container.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_post_repository(session: AsyncSession = Depends(get_db_session)) -> PostRepository:
    return PostRepository(session)


def get_post_lister(
    posts: PostRepository = Depends(get_post_repository),
    container: ServiceContainer = Depends(get_container),
) -> PostLister:
    return PostLister(posts, container.directory, limit=container.list_limit)


def get_post_creator(
    posts: PostRepository = Depends(get_post_repository),
    container: ServiceContainer = Depends(get_container),
) -> PostCreator:
    return PostCreator(posts, container.limiter)
