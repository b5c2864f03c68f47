"""Async engine and session factory for leads, campaigns, credits and websets.

Provides:
- engine: AsyncEngine on PostgreSQL (asyncpg only)
- AsyncSessionLocal: session factory; objects stay usable after commit
- get_db(): async context manager used by the CLI and the HTTP layer
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import config

logger = logging.getLogger(__name__)

REQUIRED_DRIVER = "postgresql+asyncpg"


def database_url(raw: Optional[str] = None) -> URL:
    """Parse DATABASE_URL and reject anything but the asyncpg driver."""
    raw = raw or config.DATABASE_URL
    if not raw:
        raise RuntimeError(
            "DATABASE_URL is not set. "
            "Copy .env.example to .env and point it at the leads database."
        )
    url = make_url(raw)
    if url.drivername != REQUIRED_DRIVER:
        raise RuntimeError(
            f"DATABASE_URL must use the '{REQUIRED_DRIVER}' driver, got '{url.drivername}'. "
            f"Example: {REQUIRED_DRIVER}://user:password@localhost:5432/leads"
        )
    return url


engine = create_async_engine(
    database_url(),
    pool_pre_ping=True,
    pool_size=config.DB_POOL_SIZE,
    max_overflow=config.DB_MAX_OVERFLOW,
    pool_timeout=config.DB_POOL_TIMEOUT,
)

# Orchestrators commit mid-flow (rate-limit rows, the per-item savepoints of
# the webhook) and keep reading the same rows afterwards.
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session; commit on clean exit, roll back and re-raise otherwise.

    Usage:
        async with get_db() as session:
            await search_leads(session, user_id, payload, sink)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Rolled back lead pipeline session")
            raise


async def dispose_engine() -> None:
    """Close pooled connections; called at API shutdown and after CLI runs."""
    await engine.dispose()
