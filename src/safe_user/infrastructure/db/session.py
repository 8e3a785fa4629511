"""Async SQLAlchemy session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

DEFAULT_POOL_SIZE = 5
DEFAULT_POOL_TIMEOUT_SECONDS = 30.0


def create_session_factory(
    database_url: str,
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    pool_timeout_seconds: float = DEFAULT_POOL_TIMEOUT_SECONDS,
) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory over a bounded connection pool.

    Checkouts beyond `pool_size` wait up to `pool_timeout_seconds` for a free
    connection before SQLAlchemy raises `sqlalchemy.exc.TimeoutError`.
    """

    engine = create_async_engine(
        database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout_seconds,
        pool_pre_ping=True,
    )
    return async_sessionmaker(engine, expire_on_commit=False)
