"""Do-not-contact list: per-user email suppression."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import DoNotContact

logger = logging.getLogger(__name__)


async def get_suppressed_emails(session: AsyncSession, user_id: UUID) -> set[str]:
    """Return the user's suppressed emails, lowercased (loaded once per search)."""
    result = await session.execute(
        select(DoNotContact.email).where(DoNotContact.user_id == user_id)
    )
    return {row[0].lower().strip() for row in result.all()}


async def is_suppressed(session: AsyncSession, user_id: UUID, email: str) -> bool:
    """Return True if this email is on the user's do-not-contact list."""
    email = email.lower().strip()
    result = await session.execute(
        select(DoNotContact.id)
        .where(DoNotContact.user_id == user_id)
        .where(DoNotContact.email == email)
    )
    return result.scalar_one_or_none() is not None


async def add(
    session: AsyncSession, user_id: UUID, email: str, reason: Optional[str] = None
) -> DoNotContact:
    """Add an email to the user's list. Idempotent: safe to call twice."""
    email = email.lower().strip()
    result = await session.execute(
        select(DoNotContact)
        .where(DoNotContact.user_id == user_id)
        .where(DoNotContact.email == email)
    )
    row = result.scalar_one_or_none()
    if row is not None:
        return row
    row = DoNotContact(user_id=user_id, email=email, reason=reason)
    session.add(row)
    await session.flush()
    return row
