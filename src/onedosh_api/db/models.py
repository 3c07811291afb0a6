"""
onedosh_api.db.models

Core persistence schema.

Responsibilities:
- Define ORM models for identity (users, roles, permissions, pins, tokens),
  compliance (tiers, KYC), money movement (wallets, transactions, cards, rates)
  and engagement (dosh points, support tickets).
- Monetary columns hold integers in the currency's smallest unit.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from onedosh_api.db.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UuidPkMixin,
    str_enum,
    utcnow,
)

# --- Enums ------------------------------------------------------------------


class UserStatus(enum.StrEnum):
    active = "active"
    inactive = "inactive"
    blocked = "blocked"
    pending_deletion = "pending_deletion"


class VerificationType(enum.StrEnum):
    transaction_pin_reset = "transaction_pin_reset"
    change_password = "change_password"
    account_deletion = "account_deletion"
    change_phone = "change_phone"


class KycStatus(enum.StrEnum):
    not_started = "not_started"
    pending = "pending"
    in_review = "in_review"
    approved = "approved"
    rejected = "rejected"
    resubmission_requested = "resubmission_requested"


class WalletStatus(enum.StrEnum):
    active = "active"
    frozen = "frozen"


class TransactionType(enum.StrEnum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    transfer_in = "transfer_in"
    transfer_out = "transfer_out"
    exchange = "exchange"
    card_funding = "card_funding"
    fee = "fee"
    reward = "reward"


class TransactionStatus(enum.StrEnum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class CardUserStatus(enum.StrEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class CardType(enum.StrEnum):
    virtual = "virtual"
    physical = "physical"


class CardStatus(enum.StrEnum):
    pending = "pending"
    active = "active"
    inactive = "inactive"
    blocked = "blocked"
    canceled = "canceled"


class CardTransactionType(enum.StrEnum):
    funding = "funding"
    spend = "spend"
    refund = "refund"
    fee = "fee"
    balance_transfer_out = "balance_transfer_out"
    balance_transfer_in = "balance_transfer_in"


class CardTransactionStatus(enum.StrEnum):
    pending = "pending"
    successful = "successful"
    declined = "declined"
    failed = "failed"


class DoshPointsTransactionType(enum.StrEnum):
    credit = "credit"
    debit = "debit"


class DoshPointsTransactionStatus(enum.StrEnum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class DoshPointsAccountStatus(enum.StrEnum):
    active = "active"
    frozen = "frozen"


class SupportTicketChannel(enum.StrEnum):
    ticket = "ticket"
    contact = "contact"


class SupportTicketStatus(enum.StrEnum):
    open = "open"
    pending = "pending"
    resolved = "resolved"
    closed = "closed"


# --- Identity ---------------------------------------------------------------

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", SAUuid(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        SAUuid(as_uuid=True),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", SAUuid(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    desc: Mapped[str | None] = mapped_column(Text, nullable=True)


class Role(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    desc: Mapped[str | None] = mapped_column(Text, nullable=True)

    permissions: Mapped[list[Permission]] = relationship(secondary=role_permissions, lazy="selectin")


class User(UuidPkMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    phone_number_country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(2), nullable=True)

    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[UserStatus] = mapped_column(
        str_enum(UserStatus), nullable=False, default=UserStatus.active, index=True
    )
    is_deactivated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    require_password_reset: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    require_transaction_pin_reset: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    roles: Mapped[list[Role]] = relationship(secondary=user_roles, lazy="selectin")
    profile: Mapped[UserProfile | None] = relationship(
        back_populates="user", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
    transaction_pin: Mapped[TransactionPin | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def role_slugs(self) -> list[str]:
        return sorted({r.slug for r in self.roles})

    @property
    def permission_slugs(self) -> list[str]:
        return sorted({p.slug for r in self.roles for p in r.permissions})


class UserProfile(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "users_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    dob: Mapped[date | None] = mapped_column(nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state_or_province: Mapped[str | None] = mapped_column(String(128), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    notification_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship(back_populates="profile")


class TransactionPin(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "transaction_pins"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    pin: Mapped[str | None] = mapped_column(String(255), nullable=True)
    failed_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column(nullable=True)

    user: Mapped[User] = relationship(back_populates="transaction_pin")


class VerificationToken(UuidPkMixin, Base):
    __tablename__ = "verification_tokens"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    verification_type: Mapped[VerificationType] = mapped_column(
        str_enum(VerificationType), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


# --- Compliance -------------------------------------------------------------


class TierConfig(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "tier_configs"

    country_code: Mapped[str] = mapped_column(String(2), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    maximum_single_transaction: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    maximum_daily_transaction: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    verification_requirements: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (UniqueConstraint("country_code", "level", name="uq_tier_configs_country_level"),)


class UserTier(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "user_tiers"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    tier_config_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("tier_configs.id"), nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tier_config: Mapped[TierConfig] = relationship(lazy="selectin")


class KycVerification(UuidPkMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "kyc_verifications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier_config_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("tier_configs.id"), nullable=True
    )
    provider: Mapped[str] = mapped_column(String(64), nullable=False)
    provider_ref: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    status: Mapped[KycStatus] = mapped_column(
        str_enum(KycStatus), nullable=False, default=KycStatus.not_started, index=True
    )
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    tier_config: Mapped[TierConfig | None] = relationship(lazy="selectin")


# --- Money movement ---------------------------------------------------------


class FiatWallet(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "fiat_wallets"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset: Mapped[str] = mapped_column(String(8), nullable=False)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[WalletStatus] = mapped_column(
        str_enum(WalletStatus), nullable=False, default=WalletStatus.active
    )

    __table_args__ = (UniqueConstraint("user_id", "asset", name="uq_fiat_wallets_user_asset"),)


class Transaction(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "transactions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reference: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    asset: Mapped[str] = mapped_column(String(8), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    transaction_type: Mapped[TransactionType] = mapped_column(str_enum(TransactionType), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        str_enum(TransactionStatus), nullable=False, default=TransactionStatus.pending, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_transactions_user_created", "user_id", "created_at"),)


class FiatWalletTransaction(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "fiat_wallet_transactions"

    fiat_wallet_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("fiat_wallets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("transactions.id"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(str_enum(TransactionType), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        str_enum(TransactionStatus), nullable=False, default=TransactionStatus.pending
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    provider: Mapped[str | None] = mapped_column(String(64), nullable=True)
    provider_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    provider_fee: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    source: Mapped[str | None] = mapped_column(String(128), nullable=True)
    destination: Mapped[str | None] = mapped_column(String(128), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_fiat_wallet_transactions_wallet_created", "fiat_wallet_id", "created_at"),)


class CardUser(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "card_users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    provider_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[CardUserStatus] = mapped_column(
        str_enum(CardUserStatus), nullable=False, default=CardUserStatus.pending
    )


class Card(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "cards"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("card_users.id", ondelete="CASCADE"), nullable=False
    )
    provider_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_four_digits: Mapped[str | None] = mapped_column(String(4), nullable=True)
    card_type: Mapped[CardType] = mapped_column(str_enum(CardType), nullable=False, default=CardType.virtual)
    status: Mapped[CardStatus] = mapped_column(
        str_enum(CardStatus), nullable=False, default=CardStatus.pending, index=True
    )
    is_freezed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    spending_limit: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class CardTransaction(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "card_transactions"

    card_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    transaction_type: Mapped[CardTransactionType] = mapped_column(
        str_enum(CardTransactionType), nullable=False
    )
    status: Mapped[CardTransactionStatus] = mapped_column(
        str_enum(CardTransactionStatus), nullable=False, default=CardTransactionStatus.pending
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    merchant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)


class RateConfig(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "rate_configs"

    provider: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # {"fiat_exchange": {"service_fee": {"value": 1.5, "currency": "USD", "is_percentage": true}, ...}}
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    @property
    def fiat_exchange(self) -> dict[str, Any]:
        return dict((self.config or {}).get("fiat_exchange") or {})


class ExchangeRate(UuidPkMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "exchange_rates"

    provider: Mapped[str] = mapped_column(String(64), nullable=False)
    buying_currency_code: Mapped[str] = mapped_column(String(8), nullable=False)
    selling_currency_code: Mapped[str] = mapped_column(String(8), nullable=False)
    rate: Mapped[int] = mapped_column(BigInteger, nullable=False)
    provider_rate: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    provider_rate_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("ix_exchange_rates_pair", "buying_currency_code", "selling_currency_code", "provider"),
    )


# --- Engagement -------------------------------------------------------------


class DoshPointsEvent(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "dosh_points_events"

    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_type: Mapped[DoshPointsTransactionType] = mapped_column(
        str_enum(DoshPointsTransactionType), nullable=False, default=DoshPointsTransactionType.credit
    )
    default_points: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_one_time_per_user: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    start_date: Mapped[datetime | None] = mapped_column(nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)


class DoshPointsAccount(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "dosh_points_accounts"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[DoshPointsAccountStatus] = mapped_column(
        str_enum(DoshPointsAccountStatus), nullable=False, default=DoshPointsAccountStatus.active
    )


class DoshPointsTransaction(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "dosh_points_transactions"

    dosh_points_account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("dosh_points_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    transaction_type: Mapped[DoshPointsTransactionType] = mapped_column(
        str_enum(DoshPointsTransactionType), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source_reference: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[DoshPointsTransactionStatus] = mapped_column(
        str_enum(DoshPointsTransactionStatus), nullable=False, default=DoshPointsTransactionStatus.pending
    )
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_dosh_points_transactions_user_event", "user_id", "event_code"),)


class SupportTicket(UuidPkMixin, TimestampMixin, Base):
    __tablename__ = "support_tickets"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    ticket_number: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    channel: Mapped[SupportTicketChannel] = mapped_column(
        str_enum(SupportTicketChannel), nullable=False, default=SupportTicketChannel.ticket
    )
    status: Mapped[SupportTicketStatus] = mapped_column(
        str_enum(SupportTicketStatus), nullable=False, default=SupportTicketStatus.open
    )
    provider_ticket_id: Mapped[str | None] = mapped_column(String(64), nullable=True)


# --- Module Notes -----------------------------------------------------------
# Keep column names aligned with `alembic/versions/*`; the migrations are the source
# of truth for production schemas, these models for the application and tests.
