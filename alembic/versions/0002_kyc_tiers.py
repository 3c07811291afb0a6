"""kyc: tier configs, user tiers, kyc verifications

Revision ID: 0002_kyc_tiers
Revises: 0001_identity
Create Date: 2026-03-04 09:30:00

"""
from alembic import op
import sqlalchemy as sa

from onedosh_api.db.migration_helpers import (
    create_index_if_missing,
    create_table_if_missing,
    drop_table_if_exists,
    timestamps,
)

# revision identifiers, used by Alembic.
revision = "0002_kyc_tiers"
down_revision = "0001_identity"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "tier_configs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("country_code", sa.String(2), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("maximum_single_transaction", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("maximum_daily_transaction", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("verification_requirements", sa.JSON(), nullable=False),
        *timestamps(),
        sa.UniqueConstraint("country_code", "level", name="uq_tier_configs_country_level"),
    )
    create_table_if_missing(
        "user_tiers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("tier_config_id", sa.Uuid(), sa.ForeignKey("tier_configs.id"), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
        *timestamps(),
    )
    create_table_if_missing(
        "kyc_verifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tier_config_id", sa.Uuid(), sa.ForeignKey("tier_configs.id"), nullable=True),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("provider_ref", sa.String(128), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="not_started"),
        sa.Column("attempt", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.String(128), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        *timestamps(),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    create_index_if_missing("ix_kyc_verifications_user_id", "kyc_verifications", ["user_id"])
    create_index_if_missing("ix_kyc_verifications_status", "kyc_verifications", ["status"])
    create_index_if_missing("ix_kyc_verifications_provider_ref", "kyc_verifications", ["provider_ref"])


def downgrade():
    for name in ("kyc_verifications", "user_tiers", "tier_configs"):
        drop_table_if_exists(name)
