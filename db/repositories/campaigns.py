"""Campaign repository: ownership lookup and derived lead_count/status."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Campaign
from db.repositories import leads as leads_repo

logger = logging.getLogger(__name__)


async def get(session: AsyncSession, campaign_id: UUID) -> Optional[Campaign]:
    """Return the Campaign with this id, or None."""
    return await session.get(Campaign, campaign_id)


async def get_for_user(
    session: AsyncSession, campaign_id: UUID, user_id: UUID
) -> Optional[Campaign]:
    """Return the campaign only if it belongs to user_id."""
    result = await session.execute(
        select(Campaign)
        .where(Campaign.id == campaign_id)
        .where(Campaign.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def set_status(session: AsyncSession, campaign_id: UUID, status: str) -> None:
    """Set a campaign's status."""
    await session.execute(
        update(Campaign).where(Campaign.id == campaign_id).values(status=status)
    )
    await session.flush()


async def refresh_lead_count(
    session: AsyncSession, campaign_id: UUID, status: Optional[str] = None
) -> int:
    """Recount the campaign's leads, store the count, and optionally set status.

    Returns the new lead_count.
    """
    count = await leads_repo.count_for_campaign(session, campaign_id)
    values: dict = {"lead_count": count}
    if status is not None:
        values["status"] = status
    await session.execute(
        update(Campaign).where(Campaign.id == campaign_id).values(**values)
    )
    await session.flush()
    logger.info("Campaign %s now has %d leads (status=%s)", campaign_id, count, status)
    return count
