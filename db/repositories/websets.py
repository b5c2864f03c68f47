"""Webset search records: creation, processing lock, completion."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import WebsetSearch

logger = logging.getLogger(__name__)


async def create(
    session: AsyncSession,
    webset_id: str,
    query: str,
    user_id: Optional[UUID] = None,
    campaign_id: Optional[UUID] = None,
    webhook_secret: Optional[str] = None,
) -> WebsetSearch:
    """Record a newly started webset in status 'processing'."""
    record = WebsetSearch(
        webset_id=webset_id,
        query=query,
        user_id=user_id,
        campaign_id=campaign_id,
        webhook_secret=webhook_secret,
        status="processing",
    )
    session.add(record)
    await session.flush()
    return record


async def get_by_webset_id(session: AsyncSession, webset_id: str) -> Optional[WebsetSearch]:
    """Return the search record for a provider job id, with its campaign loaded."""
    result = await session.execute(
        select(WebsetSearch)
        .options(selectinload(WebsetSearch.campaign))
        .where(WebsetSearch.webset_id == webset_id)
        # status is changed with bulk UPDATEs; always reload the row
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def acquire_processing_lock(session: AsyncSession, webset_id: str) -> bool:
    """Flip status processing -> processing_webhook; True only for the caller that wins.

    Conditional UPDATE, so two deliveries racing for the same job cannot both
    succeed.
    """
    result = await session.execute(
        update(WebsetSearch)
        .where(WebsetSearch.webset_id == webset_id)
        .where(WebsetSearch.status == "processing")
        .values(status="processing_webhook")
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    return result.rowcount == 1


async def mark_completed(session: AsyncSession, webset_id: str, items_received: int) -> None:
    """Mark a job completed; later deliveries for it become no-ops."""
    await session.execute(
        update(WebsetSearch)
        .where(WebsetSearch.webset_id == webset_id)
        .values(status="completed", items_received=items_received)
        .execution_options(synchronize_session=False)
    )
    await session.flush()


async def release_processing_lock(session: AsyncSession, webset_id: str) -> bool:
    """Put a job that failed mid-processing back to 'processing' so a redelivery can retry it."""
    result = await session.execute(
        update(WebsetSearch)
        .where(WebsetSearch.webset_id == webset_id)
        .where(WebsetSearch.status == "processing_webhook")
        .values(status="processing")
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    return result.rowcount == 1
