"""cards: card users, cards, card transactions

Revision ID: 0004_cards
Revises: 0003_wallets
Create Date: 2026-03-10 11:45:00

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
revision = "0004_cards"
down_revision = "0003_wallets"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "card_users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("provider_ref", sa.String(128), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        *timestamps(),
    )
    create_table_if_missing(
        "cards",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "card_user_id", sa.Uuid(), sa.ForeignKey("card_users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("provider_ref", sa.String(128), nullable=True),
        sa.Column("last_four_digits", sa.String(4), nullable=True),
        sa.Column("card_type", sa.String(32), nullable=False, server_default="virtual"),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("is_freezed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("spending_limit", sa.BigInteger(), nullable=True),
        *timestamps(),
    )
    create_index_if_missing("ix_cards_user_id", "cards", ["user_id"])
    create_index_if_missing("ix_cards_status", "cards", ["status"])
    create_table_if_missing(
        "card_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("card_id", sa.Uuid(), sa.ForeignKey("cards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("fee", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("transaction_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("merchant_name", sa.String(255), nullable=True),
        sa.Column("provider_ref", sa.String(128), nullable=True),
        *timestamps(),
    )
    create_index_if_missing("ix_card_transactions_card_id", "card_transactions", ["card_id"])
    create_index_if_missing("ix_card_transactions_user_id", "card_transactions", ["user_id"])


def downgrade():
    for name in ("card_transactions", "cards", "card_users"):
        drop_table_if_exists(name)
