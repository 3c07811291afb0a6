"""identity: roles, permissions, users, profiles, pins, verification tokens

Revision ID: 0001_identity
Revises:
Create Date: 2026-03-02 10:00:00

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
revision = "0001_identity"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "permissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False, unique=True),
        sa.Column("desc", sa.Text(), nullable=True),
        *timestamps(),
    )
    create_table_if_missing(
        "roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False, unique=True),
        sa.Column("desc", sa.Text(), nullable=True),
        *timestamps(),
    )
    create_table_if_missing(
        "role_permissions",
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    create_table_if_missing(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("middle_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=False),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True, unique=True),
        sa.Column("phone_number_country_code", sa.String(8), nullable=True),
        sa.Column("country_code", sa.String(2), nullable=True),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_phone_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        sa.Column("is_deactivated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("require_password_reset", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "require_transaction_pin_reset", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *timestamps(),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    create_index_if_missing("ix_users_status", "users", ["status"])
    create_table_if_missing(
        "user_roles",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )
    create_table_if_missing(
        "users_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(16), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state_or_province", sa.String(128), nullable=True),
        sa.Column("postal_code", sa.String(32), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("notification_token", sa.Text(), nullable=True),
        *timestamps(),
    )
    create_table_if_missing(
        "transaction_pins",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("pin", sa.String(255), nullable=True),
        sa.Column("failed_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        *timestamps(),
    )
    create_table_if_missing(
        "verification_tokens",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(128), nullable=False, unique=True),
        sa.Column("verification_type", sa.String(32), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    create_index_if_missing("ix_verification_tokens_user_id", "verification_tokens", ["user_id"])


def downgrade():
    for name in (
        "verification_tokens",
        "transaction_pins",
        "users_profiles",
        "user_roles",
        "users",
        "role_permissions",
        "roles",
        "permissions",
    ):
        drop_table_if_exists(name)
