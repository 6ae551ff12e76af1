"""
Inventory Service — Database Engine & Session Management
==========================================================

What:  Async SQLAlchemy engine and session factory construction for the
       row-backed inventory repository.
How:   `build_engine()` creates an async engine from Settings; the app
       lifespan owns it, hands a session factory to SqlInventoryRepository,
       and disposes it on shutdown. Nothing here is created at import time.
Who:   Used by main.py (lifespan), the Alembic environment, and tests.

Connection Pooling (server databases only):
    pool_size / max_overflow:  from DB_POOL_SIZE / DB_MAX_OVERFLOW
    pool_pre_ping:             validates connections before use
    pool_recycle=3600:         recycles connections every hour
    SQLite URLs (used in tests) keep the dialect's default pool.
"""

import logging

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from inventory_service.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, used by Alembic and by create_schema().
    """
    pass


def build_engine(settings: Settings, url: str | None = None) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Args:
        settings: Source of pool sizing and log level.
        url: Override for settings.sqlalchemy_url (used in tests).
    """
    target = url or settings.sqlalchemy_url
    options = {"echo": settings.log_level == "DEBUG"}
    if make_url(target).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    engine = create_async_engine(target, **options)
    logger.info("Database engine created for %s", make_url(target).render_as_string())
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory with expire_on_commit=False so returned rows stay
    readable after the committing session closes.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create every mapped table that does not exist yet."""
    # Registers InventoryRecord on Base.metadata
    from inventory_service.models import item  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
