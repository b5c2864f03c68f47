"""Sliding-window request log backing the per-user endpoint limiter."""
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import RateLimit

logger = logging.getLogger(__name__)


async def purge_older_than(session: AsyncSession, cutoff: datetime) -> int:
    """Delete windows that started before cutoff. Returns rows removed."""
    result = await session.execute(
        delete(RateLimit)
        .where(RateLimit.window_start < cutoff)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def get_windows_since(
    session: AsyncSession, user_id: UUID, endpoint: str, since: datetime
) -> list[RateLimit]:
    """Return the (user, endpoint) windows that started at or after since."""
    result = await session.execute(
        select(RateLimit)
        .where(RateLimit.user_id == user_id)
        .where(RateLimit.endpoint == endpoint)
        .where(RateLimit.window_start >= since)
        .order_by(RateLimit.window_start)
    )
    return list(result.scalars().all())


async def record_request(
    session: AsyncSession, user_id: UUID, endpoint: str, at: datetime
) -> RateLimit:
    """Log one accepted request."""
    row = RateLimit(user_id=user_id, endpoint=endpoint, window_start=at, request_count=1)
    session.add(row)
    await session.flush()
    return row
