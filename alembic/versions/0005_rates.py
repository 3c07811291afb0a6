"""rates: rate configs, exchange rates

Revision ID: 0005_rates
Revises: 0004_cards
Create Date: 2026-03-12 08:20:00

"""
from alembic import op
import sqlalchemy as sa

from onedosh_api.db.migration_helpers import create_table_if_missing, drop_table_if_exists, timestamps

# revision identifiers, used by Alembic.
revision = "0005_rates"
down_revision = "0004_cards"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "rate_configs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("provider", sa.String(64), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("config", sa.JSON(), nullable=False),
        *timestamps(),
    )
    create_table_if_missing(
        "exchange_rates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("buying_currency_code", sa.String(8), nullable=False),
        sa.Column("selling_currency_code", sa.String(8), nullable=False),
        sa.Column("rate", sa.BigInteger(), nullable=False),
        sa.Column("provider_rate", sa.BigInteger(), nullable=True),
        sa.Column("provider_rate_ref", sa.String(128), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *timestamps(),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )


def downgrade():
    for name in ("exchange_rates", "rate_configs"):
        drop_table_if_exists(name)
