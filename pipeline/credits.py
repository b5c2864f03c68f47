"""Credit accounting: budget lookup, atomic charge, audit row, notifications."""
import logging
from typing import NamedTuple, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db.models import Subscription
from db.repositories import credits as credits_repo
from db.repositories.credits import CreditBalance
from pipeline.events import LEADS_FOUND, LOW_CREDITS, EventSink

logger = logging.getLogger(__name__)


class Budget(NamedTuple):
    available: int
    subscription: Optional[Subscription]

    @property
    def exhausted(self) -> bool:
        sub = self.subscription
        return sub is not None and (sub.credits_used or 0) >= (sub.credits_limit or 0)


async def get_budget(session: AsyncSession, user_id: UUID) -> Budget:
    """Credits the user may spend on one search (fallback when no subscription)."""
    subscription = await credits_repo.get_subscription(session, user_id)
    if subscription is None:
        return Budget(config.DEFAULT_CREDIT_BUDGET, None)
    available = (subscription.credits_limit or 0) - (subscription.credits_used or 0)
    return Budget(max(available, 0), subscription)


async def record_usage(
    session: AsyncSession,
    user_id: UUID,
    subscription_id: Optional[UUID],
    amount: int,
    lead_id: Optional[UUID] = None,
    description: Optional[str] = None,
) -> None:
    await credits_repo.record_usage(
        session, user_id, subscription_id, amount, lead_id=lead_id, description=description
    )


def is_low(balance: CreditBalance) -> bool:
    remaining = balance.remaining
    return 0 < remaining <= balance.credits_limit * config.LOW_CREDIT_RATIO


async def charge_for_leads(
    session: AsyncSession,
    user_id: UUID,
    amount: int,
    description: str,
    events: EventSink,
    campaign_name: str,
) -> Optional[CreditBalance]:
    """Charge amount credits for saved leads and emit the follow-up events.

    One atomic increment plus exactly one audit row. Users without a
    subscription row are not charged and get no notifications.
    """
    if amount <= 0:
        return None
    balance = await credits_repo.increment_credits_used(session, user_id, amount)
    if balance is None:
        logger.warning("User %s has no subscription; %d credits not recorded", user_id, amount)
        return None
    await record_usage(session, user_id, balance.subscription_id, amount, description=description)
    logger.info(
        "Charged %d credits to user %s (%d/%d used)",
        amount, user_id, balance.credits_used, balance.credits_limit,
    )

    events.emit(LEADS_FOUND, str(user_id), {"lead_count": amount, "campaign_name": campaign_name})
    if is_low(balance):
        events.emit(LOW_CREDITS, str(user_id))
    return balance
