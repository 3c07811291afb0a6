"""support tickets

Revision ID: 0007_support_tickets
Revises: 0006_dosh_points
Create Date: 2026-03-25 13:00:00

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
revision = "0007_support_tickets"
down_revision = "0006_dosh_points"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "support_tickets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("ticket_number", sa.BigInteger(), nullable=False, unique=True),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("channel", sa.String(32), nullable=False, server_default="ticket"),
        sa.Column("status", sa.String(32), nullable=False, server_default="open"),
        sa.Column("provider_ticket_id", sa.String(64), nullable=True),
        *timestamps(),
    )
    create_index_if_missing("ix_support_tickets_user_id", "support_tickets", ["user_id"])


def downgrade():
    drop_table_if_exists("support_tickets")
