"""Initial schema: campaigns, leads, websets, credits, suppression, rate limits.

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    # ─── Campaigns and leads ─────────────────────────────────────────────────

    op.create_table(
        "campaigns",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("goal", sa.Text, nullable=True),
        sa.Column("search_query", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="draft"),
        sa.Column("lead_count", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'searching', 'active', 'paused', 'completed')",
            name="ck_campaign_status",
        ),
    )
    op.create_index("ix_campaigns_user_id", "campaigns", ["user_id"])

    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "campaign_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("campaigns.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("company", sa.Text, nullable=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("industry", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("linkedin_url", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="new"),
        sa.Column("profile_data", sa.JSON, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('new', 'contacted', 'responded', 'replied', 'qualified', 'unqualified', 'lost')",
            name="ck_lead_status",
        ),
    )
    op.create_index("ix_leads_user_id", "leads", ["user_id"])
    op.create_index(
        "uq_leads_campaign_linkedin", "leads", ["campaign_id", "linkedin_url"],
        unique=True,
        postgresql_where=sa.text("campaign_id IS NOT NULL AND linkedin_url IS NOT NULL"),
    )
    op.create_index(
        "uq_leads_campaign_email", "leads", ["campaign_id", "email"],
        unique=True,
        postgresql_where=sa.text("campaign_id IS NOT NULL AND email IS NOT NULL"),
    )

    op.create_table(
        "webset_searches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("webset_id", sa.Text, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "campaign_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("campaigns.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("query", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="processing"),
        sa.Column("items_received", sa.Integer, nullable=True),
        sa.Column("webhook_secret", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('processing', 'processing_webhook', 'completed')",
            name="ck_webset_status",
        ),
        sa.UniqueConstraint("webset_id", name="uq_webset_id"),
    )

    # ─── Credit ledger ───────────────────────────────────────────────────────

    op.create_table(
        "subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("plan_id", sa.Text, nullable=False, server_default="free"),
        sa.Column("status", sa.Text, nullable=True),
        sa.Column("credits_limit", sa.Integer, nullable=False, server_default="0"),
        sa.Column("credits_used", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_subscription_user"),
        sa.CheckConstraint("credits_used >= 0", name="ck_subscription_credits_used"),
    )

    op.create_table(
        "credit_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "subscription_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("subscriptions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("credits_used", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_credit_usage_user_id", "credit_usage", ["user_id"])

    # ─── Suppression and rate limiting ───────────────────────────────────────

    op.create_table(
        "do_not_contact",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "email", name="uq_dnc_user_email"),
    )

    op.create_table(
        "rate_limits",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("endpoint", sa.Text, nullable=False),
        sa.Column("window_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("request_count", sa.Integer, nullable=False, server_default="1"),
    )
    op.create_index(
        "ix_rate_limits_user_endpoint_window",
        "rate_limits",
        ["user_id", "endpoint", "window_start"],
    )


def downgrade() -> None:
    op.drop_index("ix_rate_limits_user_endpoint_window", table_name="rate_limits")
    op.drop_index("ix_credit_usage_user_id", table_name="credit_usage")
    op.drop_index("uq_leads_campaign_email", table_name="leads")
    op.drop_index("uq_leads_campaign_linkedin", table_name="leads")
    op.drop_index("ix_leads_user_id", table_name="leads")
    op.drop_index("ix_campaigns_user_id", table_name="campaigns")
    # Drop in reverse dependency order
    op.drop_table("rate_limits")
    op.drop_table("do_not_contact")
    op.drop_table("credit_usage")
    op.drop_table("subscriptions")
    op.drop_table("webset_searches")
    op.drop_table("leads")
    op.drop_table("campaigns")
