"""wallets: fiat wallets, transactions, fiat wallet transactions

Revision ID: 0003_wallets
Revises: 0002_kyc_tiers
Create Date: 2026-03-06 14:10:00

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
revision = "0003_wallets"
down_revision = "0002_kyc_tiers"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "fiat_wallets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("asset", sa.String(8), nullable=False),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        *timestamps(),
        sa.UniqueConstraint("user_id", "asset", name="uq_fiat_wallets_user_asset"),
    )
    create_index_if_missing("ix_fiat_wallets_user_id", "fiat_wallets", ["user_id"])
    create_table_if_missing(
        "transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reference", sa.String(64), nullable=False, unique=True),
        sa.Column("asset", sa.String(8), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_before", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("balance_after", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("transaction_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *timestamps(),
    )
    create_index_if_missing("ix_transactions_user_id", "transactions", ["user_id"])
    create_index_if_missing("ix_transactions_status", "transactions", ["status"])
    create_table_if_missing(
        "fiat_wallet_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "fiat_wallet_id", sa.Uuid(), sa.ForeignKey("fiat_wallets.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("transaction_id", sa.Uuid(), sa.ForeignKey("transactions.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("transaction_type", sa.String(32), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_before", sa.BigInteger(), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("provider", sa.String(64), nullable=True),
        sa.Column("provider_reference", sa.String(128), nullable=True),
        sa.Column("provider_fee", sa.BigInteger(), nullable=True),
        sa.Column("source", sa.String(128), nullable=True),
        sa.Column("destination", sa.String(128), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *timestamps(),
    )
    create_index_if_missing(
        "ix_fiat_wallet_transactions_fiat_wallet_id", "fiat_wallet_transactions", ["fiat_wallet_id"]
    )
    create_index_if_missing(
        "ix_fiat_wallet_transactions_transaction_id", "fiat_wallet_transactions", ["transaction_id"]
    )
    create_index_if_missing("ix_fiat_wallet_transactions_user_id", "fiat_wallet_transactions", ["user_id"])


def downgrade():
    for name in ("fiat_wallet_transactions", "transactions", "fiat_wallets"):
        drop_table_if_exists(name)
