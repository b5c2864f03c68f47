"""Lead repository: campaign-scoped dedup and in-place updates."""
import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Lead

logger = logging.getLogger(__name__)

# Columns that an update never overwrites: identity and lifecycle stay with the row.
_PRESERVED_ON_UPDATE = frozenset({"id", "status", "user_id", "campaign_id"})


async def get(session: AsyncSession, lead_id: UUID) -> Optional[Lead]:
    """Return the Lead with this id, or None."""
    return await session.get(Lead, lead_id)


async def get_many(session: AsyncSession, lead_ids: Iterable[UUID]) -> list[Lead]:
    """Return all leads whose id is in lead_ids (order not guaranteed)."""
    ids = list(lead_ids)
    if not ids:
        return []
    result = await session.execute(select(Lead).where(Lead.id.in_(ids)))
    return list(result.scalars().all())


async def find_in_campaign(
    session: AsyncSession,
    campaign_id: Optional[UUID],
    linkedin_url: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[Lead]:
    """Find an existing lead in a campaign, by LinkedIn URL first, then email.

    Returns None when no campaign is given: leads are only unique per campaign.
    """
    if campaign_id is None:
        return None

    if linkedin_url:
        result = await session.execute(
            select(Lead)
            .where(Lead.campaign_id == campaign_id)
            .where(Lead.linkedin_url == linkedin_url)
            .limit(1)
        )
        lead = result.scalar_one_or_none()
        if lead is not None:
            return lead

    if email:
        result = await session.execute(
            select(Lead)
            .where(Lead.campaign_id == campaign_id)
            .where(Lead.email == email)
            .limit(1)
        )
        return result.scalar_one_or_none()

    return None


async def _email_taken_by_other(session: AsyncSession, lead: Lead, email: Optional[str]) -> bool:
    # A match by linkedin_url can carry an email another lead in the campaign owns.
    if not email or email == lead.email or lead.campaign_id is None:
        return False
    result = await session.execute(
        select(Lead.id)
        .where(Lead.campaign_id == lead.campaign_id)
        .where(Lead.email == email)
        .where(Lead.id != lead.id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def upsert_in_campaign(session: AsyncSession, data: dict[str, Any]) -> tuple[Lead, bool]:
    """Insert a lead, or overwrite the campaign's existing copy of the same person.

    data dict keys: user_id, campaign_id, name, title, company, location,
    industry, email, linkedin_url, profile_data (and optionally status for
    new rows).

    Returns (lead, created).
    """
    existing = await find_in_campaign(
        session,
        data.get("campaign_id"),
        linkedin_url=data.get("linkedin_url"),
        email=data.get("email"),
    )
    if existing is not None:
        preserved = _PRESERVED_ON_UPDATE
        if await _email_taken_by_other(session, existing, data.get("email")):
            logger.info(
                "Keeping email of lead %s: %s belongs to another lead in the campaign",
                existing.id, data["email"],
            )
            preserved = preserved | {"email"}
        for key, value in data.items():
            if key not in preserved:
                setattr(existing, key, value)
        await session.flush()
        logger.debug("Lead updated in place: %s (%s)", existing.name, existing.id)
        return existing, False

    lead = Lead(**data)
    session.add(lead)
    await session.flush()
    logger.debug("Lead inserted: %s (%s)", lead.name, lead.id)
    return lead, True


async def merge_profile_data(session: AsyncSession, lead: Lead, fields: dict[str, Any]) -> Lead:
    """Merge fields into lead.profile_data, keeping every key already present."""
    lead.profile_data = {**(lead.profile_data or {}), **fields}
    await session.flush()
    return lead


async def list_for_campaign(session: AsyncSession, campaign_id: UUID) -> list[Lead]:
    """Return every lead in a campaign, oldest first."""
    result = await session.execute(
        select(Lead).where(Lead.campaign_id == campaign_id).order_by(Lead.created_at)
    )
    return list(result.scalars().all())


async def count_for_campaign(session: AsyncSession, campaign_id: UUID) -> int:
    """Return the number of leads in a campaign."""
    result = await session.execute(
        select(func.count(Lead.id)).where(Lead.campaign_id == campaign_id)
    )
    return int(result.scalar_one())
