"""dosh points: events, accounts, transactions

Revision ID: 0006_dosh_points
Revises: 0005_rates
Create Date: 2026-03-18 16:05:00

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
revision = "0006_dosh_points"
down_revision = "0005_rates"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "dosh_points_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("transaction_type", sa.String(32), nullable=False, server_default="credit"),
        sa.Column("default_points", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_one_time_per_user", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        *timestamps(),
    )
    create_table_if_missing(
        "dosh_points_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        *timestamps(),
    )
    create_table_if_missing(
        "dosh_points_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "dosh_points_account_id",
            sa.Uuid(),
            sa.ForeignKey("dosh_points_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_code", sa.String(64), nullable=False),
        sa.Column("transaction_type", sa.String(32), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_before", sa.BigInteger(), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("source_reference", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("idempotency_key", sa.String(255), nullable=False, unique=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        *timestamps(),
    )
    create_index_if_missing(
        "ix_dosh_points_transactions_dosh_points_account_id",
        "dosh_points_transactions",
        ["dosh_points_account_id"],
    )
    create_index_if_missing("ix_dosh_points_transactions_user_id", "dosh_points_transactions", ["user_id"])
    create_index_if_missing(
        "ix_dosh_points_transactions_event_code", "dosh_points_transactions", ["event_code"]
    )


def downgrade():
    for name in ("dosh_points_transactions", "dosh_points_accounts", "dosh_points_events"):
        drop_table_if_exists(name)
