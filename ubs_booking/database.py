"""Database configuration and connection management."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import Table, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ubs_booking.config import settings
from ubs_booking.core.exceptions import TransientStoreError

logger = structlog.get_logger(__name__)


def to_async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def engine_options(url: str) -> dict[str, Any]:
    """Build engine keyword arguments for the given database URL."""
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    # Pool sizing and server settings only apply to server databases
    if url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
            connect_args={
                "server_settings": {
                    "application_name": settings.app_name,
                },
            },
        )
    return options


DATABASE_URL = to_async_url(settings.database_url)

# Create async engine with connection pooling
engine: AsyncEngine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


@asynccontextmanager
async def transaction_scope(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit the session's transaction on success, roll it back on any error.

    Store aborts (lock timeouts, deadlocks, dropped connections) are raised
    as ``TransientStoreError``; integrity violations propagate unchanged so
    callers can turn them into domain errors.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    except DBAPIError as e:
        await session.rollback()
        logger.warning("transaction_aborted", error=str(e.orig) if e.orig else str(e))
        raise TransientStoreError() from e
    except Exception:
        await session.rollback()
        raise


def dialect_insert(session: AsyncSession, table: Table) -> postgresql.Insert | sqlite.Insert:
    """Build an INSERT supporting ``ON CONFLICT`` for the session's dialect."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on {dialect}")
