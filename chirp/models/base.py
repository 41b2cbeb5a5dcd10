"""SQLAlchemy base model and engine/session construction.

Engines are built by the service container once per process and handed to
request handlers through dependencies; nothing here is a module-level
singleton.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from chirp.core.config import DatabaseSettings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def build_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured URL.

    In-memory SQLite needs a single shared connection, otherwise every
    checkout would see an empty database.
    """
    kwargs: dict[str, Any] = {"echo": db_settings.echo}
    if db_settings.url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_settings.url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return create_async_engine(db_settings.url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables (development convenience, not migrations)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.tables_ready", extra={"tables": sorted(Base.metadata.tables)})
