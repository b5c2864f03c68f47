"""Per-user, per-endpoint sliding-window limiter backed by the rate_limits table.

Check-then-record is best-effort, not atomic. Storage failures fail open:
a database hiccup never blocks a search.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db.repositories import rate_limits as rate_limits_repo

logger = logging.getLogger(__name__)


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def check_rate_limit(
    session: AsyncSession,
    user_id: UUID,
    endpoint: str,
    max_requests: int = config.RATE_LIMIT_MAX_REQUESTS,
    window_seconds: int = config.RATE_LIMIT_WINDOW_SECONDS,
) -> RateLimitDecision:
    """Allow and record the request, or deny it with the seconds until a slot frees up."""
    now = datetime.now(timezone.utc)
    try:
        async with session.begin_nested():
            await rate_limits_repo.purge_older_than(
                session, now - timedelta(hours=config.RATE_LIMIT_RETENTION_HOURS)
            )
            windows = await rate_limits_repo.get_windows_since(
                session, user_id, endpoint, now - timedelta(seconds=window_seconds)
            )
            used = sum(w.request_count for w in windows)
            if used >= max_requests:
                oldest = _as_utc(windows[0].window_start)
                wait = (oldest + timedelta(seconds=window_seconds) - now).total_seconds()
                retry_after = max(1, math.ceil(wait))
                logger.info(
                    "Rate limit hit for user %s on %s (%d/%d), retry in %ds",
                    user_id, endpoint, used, max_requests, retry_after,
                )
                return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
            await rate_limits_repo.record_request(session, user_id, endpoint, now)
            return RateLimitDecision(allowed=True, remaining=max_requests - used - 1)
    except Exception:
        logger.exception("Rate limit check failed for user %s on %s; allowing", user_id, endpoint)
        return RateLimitDecision(allowed=True, remaining=max_requests)
