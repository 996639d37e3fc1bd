"""Create the ``estimations`` and ``zoko_leads`` tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001_create_lead_tables"
down_revision = None
branch_labels = None
depends_on = None


_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
_NOW = sa.text("CURRENT_TIMESTAMP")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=_NOW),
    ]


def upgrade() -> None:
    """Create both tables, the lead uniqueness constraint and lookup indexes."""

    op.create_table(
        "estimations",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'draft'"),
        ),
        sa.Column("customer_phone", sa.Text()),
        sa.Column("customer_name", sa.Text()),
        sa.Column("grand_total", sa.Numeric(10, 2), server_default=sa.text("0")),
        sa.Column("currency", sa.String(length=8), server_default=sa.text("'AED'")),
    )
    op.create_index("idx_estimations_customer_phone", "estimations", ["customer_phone"])
    op.create_index("idx_estimations_created_at", "estimations", ["created_at"])

    op.create_table(
        "zoko_leads",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("zoko_customer_id", sa.Text(), nullable=False),
        sa.Column("customer_name", sa.Text()),
        sa.Column("customer_phone", sa.Text()),
        sa.Column("images", _JSON, nullable=False),
        sa.Column("context_messages", _JSON),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'new'"),
        ),
        sa.Column("claimed_by", sa.Text()),
        sa.Column("claimed_at", sa.DateTime(timezone=True)),
        sa.Column("first_image_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text()),
        sa.UniqueConstraint(
            "zoko_customer_id",
            "first_image_at",
            name="uq_zoko_leads_customer_first_image",
        ),
    )
    op.create_index("idx_zoko_leads_status", "zoko_leads", ["status"])
    op.create_index("idx_zoko_leads_claimed_by", "zoko_leads", ["claimed_by"])
    op.create_index("idx_zoko_leads_first_image_at", "zoko_leads", ["first_image_at"])
    op.create_index("idx_zoko_leads_customer_phone", "zoko_leads", ["customer_phone"])


def downgrade() -> None:
    """Drop ``zoko_leads`` and ``estimations`` with their indexes."""

    op.drop_index("idx_zoko_leads_customer_phone", table_name="zoko_leads")
    op.drop_index("idx_zoko_leads_first_image_at", table_name="zoko_leads")
    op.drop_index("idx_zoko_leads_claimed_by", table_name="zoko_leads")
    op.drop_index("idx_zoko_leads_status", table_name="zoko_leads")
    op.drop_table("zoko_leads")

    op.drop_index("idx_estimations_created_at", table_name="estimations")
    op.drop_index("idx_estimations_customer_phone", table_name="estimations")
    op.drop_table("estimations")
