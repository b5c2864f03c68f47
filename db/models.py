"""SQLAlchemy 2.0 ORM models for the lead discovery pipeline.

Covers 7 tables:
  - campaigns, leads: recruiting campaigns and the candidates found for them
  - webset_searches: asynchronous provider jobs awaiting their webhook
  - subscriptions, credit_usage: credit ledger and its audit trail
  - do_not_contact: per-user suppression list
  - rate_limits: sliding-window request log for the search endpoints
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Status values used in CHECK constraints
# ---------------------------------------------------------------------------

LEAD_STATUSES = (
    "new",
    "contacted",
    "responded",
    "replied",
    "qualified",
    "unqualified",
    "lost",
)

CAMPAIGN_STATUSES = ("draft", "searching", "active", "paused", "completed")

WEBSET_STATUSES = ("processing", "processing_webhook", "completed")


def _in_check(column: str, values: tuple) -> str:
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"


# ===========================================================================
# Campaigns and leads
# ===========================================================================


class Campaign(Base):
    """campaigns: a recruiter's search campaign. Read here, two fields derived."""

    __tablename__ = "campaigns"
    __table_args__ = (
        CheckConstraint(_in_check("status", CAMPAIGN_STATUSES), name="ck_campaign_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    search_query: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default="draft", server_default="draft"
    )
    lead_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    leads: Mapped[list["Lead"]] = relationship("Lead", back_populates="campaign")


class Lead(Base):
    """leads: a candidate discovered by search.

    linkedin_url and email are each unique within a campaign (partial unique
    indexes; NULLs never collide). Leads without a campaign are never
    deduplicated.
    """

    __tablename__ = "leads"
    __table_args__ = (
        CheckConstraint(_in_check("status", LEAD_STATUSES), name="ck_lead_status"),
        Index(
            "uq_leads_campaign_linkedin", "campaign_id", "linkedin_url",
            unique=True,
            postgresql_where=text("campaign_id IS NOT NULL AND linkedin_url IS NOT NULL"),
            sqlite_where=text("campaign_id IS NOT NULL AND linkedin_url IS NOT NULL"),
        ),
        Index(
            "uq_leads_campaign_email", "campaign_id", "email",
            unique=True,
            postgresql_where=text("campaign_id IS NOT NULL AND email IS NOT NULL"),
            sqlite_where=text("campaign_id IS NOT NULL AND email IS NOT NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    campaign_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    company: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Holds the specialty summary for healthcare candidates
    industry: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="new", server_default="new")
    profile_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    campaign: Mapped[Optional["Campaign"]] = relationship("Campaign", back_populates="leads")


class WebsetSearch(Base):
    """webset_searches: one asynchronous provider job.

    Status only moves processing -> processing_webhook -> completed.
    """

    __tablename__ = "webset_searches"
    __table_args__ = (
        CheckConstraint(_in_check("status", WEBSET_STATUSES), name="ck_webset_status"),
        UniqueConstraint("webset_id", name="uq_webset_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    webset_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    campaign_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="SET NULL"),
        nullable=True,
    )
    query: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default="processing", server_default="processing"
    )
    items_received: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    webhook_secret: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    campaign: Mapped[Optional["Campaign"]] = relationship("Campaign")


# ===========================================================================
# Credit ledger
# ===========================================================================


class Subscription(Base):
    """subscriptions: one per user; credits_used only ever increases."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_subscription_user"),
        CheckConstraint("credits_used >= 0", name="ck_subscription_credits_used"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    plan_id: Mapped[str] = mapped_column(Text, nullable=False, default="free", server_default="free")
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default="active")
    credits_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class CreditUsage(Base):
    """credit_usage: audit row written for every credit movement."""

    __tablename__ = "credit_usage"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    subscription_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
    )
    lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("leads.id", ondelete="SET NULL"),
        nullable=True,
    )
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# ===========================================================================
# Suppression and rate limiting
# ===========================================================================


class DoNotContact(Base):
    """do_not_contact: emails a user never wants surfaced again (stored lowercase)."""

    __tablename__ = "do_not_contact"
    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_dnc_user_email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class RateLimit(Base):
    """rate_limits: one row per accepted request, keyed by (user, endpoint)."""

    __tablename__ = "rate_limits"
    __table_args__ = (
        Index("ix_rate_limits_user_endpoint_window", "user_id", "endpoint", "window_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)
    window_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    request_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )
