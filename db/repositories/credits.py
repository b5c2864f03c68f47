"""Credit ledger: subscription lookup, atomic increment, usage audit rows."""
import logging
from typing import NamedTuple, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import CreditUsage, Subscription

logger = logging.getLogger(__name__)


class CreditBalance(NamedTuple):
    subscription_id: UUID
    credits_limit: int
    credits_used: int

    @property
    def remaining(self) -> int:
        return self.credits_limit - self.credits_used


async def get_subscription(session: AsyncSession, user_id: UUID) -> Optional[Subscription]:
    """Return the user's subscription row, or None."""
    result = await session.execute(
        select(Subscription).where(Subscription.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def increment_credits_used(
    session: AsyncSession, user_id: UUID, amount: int
) -> Optional[CreditBalance]:
    """Atomically add amount to the user's credits_used.

    A single UPDATE ... SET credits_used = credits_used + :amount RETURNING,
    so concurrent searches by the same user never lose an increment.
    Returns the balance after the increment, or None if the user has no
    subscription row.
    """
    result = await session.execute(
        update(Subscription)
        .where(Subscription.user_id == user_id)
        .values(credits_used=Subscription.credits_used + amount)
        .returning(Subscription.id, Subscription.credits_limit, Subscription.credits_used)
    )
    row = result.one_or_none()
    await session.flush()
    if row is None:
        return None
    return CreditBalance(row[0], row[1] or 0, row[2] or 0)


async def record_usage(
    session: AsyncSession,
    user_id: UUID,
    subscription_id: Optional[UUID],
    amount: int,
    lead_id: Optional[UUID] = None,
    description: Optional[str] = None,
) -> CreditUsage:
    """Persist one credit_usage audit row."""
    usage = CreditUsage(
        user_id=user_id,
        subscription_id=subscription_id,
        lead_id=lead_id,
        credits_used=amount,
        description=description,
    )
    session.add(usage)
    await session.flush()
    return usage


async def list_usage(session: AsyncSession, user_id: UUID) -> list[CreditUsage]:
    """Return a user's credit_usage rows, newest first."""
    result = await session.execute(
        select(CreditUsage)
        .where(CreditUsage.user_id == user_id)
        .order_by(CreditUsage.created_at.desc())
    )
    return list(result.scalars().all())
