"""
Database Session Management

Async SQLAlchemy session with PostgreSQL, plus the bounded-timeout wrapper
every store operation goes through.
"""

import asyncio
import logging
from typing import AsyncGenerator, Awaitable, Optional, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from accessgate.api.config import settings
from accessgate.api.errors import TransientStoreError


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Module-level engine (created lazily)
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Get or create the database engine."""
    global _engine

    if _engine is None:
        url = settings.DATABASE_URL
        logger.info("Creating engine with URL: %s...", url[:40])

        # Bound connect and statement time for asyncpg
        connect_args = {}
        if url.startswith("postgresql+asyncpg"):
            connect_args["timeout"] = settings.DB_OPERATION_TIMEOUT_SEC
            connect_args["command_timeout"] = settings.DB_OPERATION_TIMEOUT_SEC

        _engine = create_async_engine(
            url,
            echo=settings.DATABASE_ECHO,
            pool_pre_ping=True,
            connect_args=connect_args,
        )

    return _engine


def get_session_maker() -> async_sessionmaker:
    """Get or create the session maker."""
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def init_db() -> None:
    """Initialize database connection."""
    from accessgate.api.db.models import Base

    engine = get_engine()
    logger.info("Initializing database connection...")

    async with engine.begin() as conn:
        # Create tables if they don't exist (dev only)
        # In production, use Alembic migrations
        if settings.DEBUG:
            logger.info("Creating tables (DEBUG mode)...")
            await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connection."""
    global _engine, _async_session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
        logger.info("Database connection closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def bounded(operation: Awaitable[T], timeout: Optional[float] = None) -> T:
    """
    Await a store operation with a bounded timeout.

    Timeouts and connection-level failures surface as TransientStoreError
    so callers can retry instead of hanging.
    """
    limit = settings.DB_OPERATION_TIMEOUT_SEC if timeout is None else timeout
    try:
        return await asyncio.wait_for(operation, timeout=limit)
    except asyncio.TimeoutError as e:
        logger.error("Store operation timed out after %.1fs", limit)
        raise TransientStoreError(details={"timeout_sec": limit}) from e
    except (OperationalError, InterfaceError) as e:
        logger.error("Store operation failed: %s", e)
        raise TransientStoreError() from e
