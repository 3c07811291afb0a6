"""add idempotency key to fiat wallet transactions and query indexes

Revision ID: 0008_idempotency_and_indexes
Revises: 0007_support_tickets
Create Date: 2026-04-02 10:15:00

"""
from alembic import op
import sqlalchemy as sa

from onedosh_api.db.migration_helpers import (
    create_index_if_missing,
    drop_index_if_exists,
    has_column,
)

# revision identifiers, used by Alembic.
revision = "0008_idempotency_and_indexes"
down_revision = "0007_support_tickets"
branch_labels = None
depends_on = None

_INDEXES = (
    ("ix_fiat_wallet_transactions_wallet_created", "fiat_wallet_transactions", ["fiat_wallet_id", "created_at"]),
    ("ix_transactions_user_created", "transactions", ["user_id", "created_at"]),
    ("ix_dosh_points_transactions_user_event", "dosh_points_transactions", ["user_id", "event_code"]),
    ("ix_exchange_rates_pair", "exchange_rates", ["buying_currency_code", "selling_currency_code", "provider"]),
)


def upgrade():
    if not has_column("fiat_wallet_transactions", "idempotency_key"):
        op.add_column(
            "fiat_wallet_transactions",
            sa.Column("idempotency_key", sa.String(128), nullable=True),
        )
    create_index_if_missing(
        "ix_fiat_wallet_transactions_idempotency_key",
        "fiat_wallet_transactions",
        ["idempotency_key"],
        unique=True,
    )
    for name, table, columns in _INDEXES:
        create_index_if_missing(name, table, columns)


def downgrade():
    for name, table, _columns in reversed(_INDEXES):
        drop_index_if_exists(name, table)
    drop_index_if_exists("ix_fiat_wallet_transactions_idempotency_key", "fiat_wallet_transactions")
    if has_column("fiat_wallet_transactions", "idempotency_key"):
        with op.batch_alter_table("fiat_wallet_transactions") as batch:
            batch.drop_column("idempotency_key")
