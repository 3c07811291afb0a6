"""
tests.test_migrations

Alembic revisions apply, roll back and re-apply cleanly on SQLite.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parents[1]

EXPECTED_TABLES = {
    "users",
    "users_profiles",
    "roles",
    "permissions",
    "transaction_pins",
    "verification_tokens",
    "tier_configs",
    "user_tiers",
    "kyc_verifications",
    "fiat_wallets",
    "transactions",
    "fiat_wallet_transactions",
    "card_users",
    "cards",
    "card_transactions",
    "rate_configs",
    "exchange_rates",
    "dosh_points_events",
    "dosh_points_accounts",
    "dosh_points_transactions",
    "support_tickets",
}


@pytest.fixture
def alembic_cfg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Config, str]:
    monkeypatch.delenv("ONEDOSH_DATABASE_URL", raising=False)
    db_file = tmp_path / "migrations.db"
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_file}")
    cfg.attributes["configure_logger"] = False
    return cfg, f"sqlite:///{db_file}"


def _tables(url: str) -> set[str]:
    engine = sa.create_engine(url)
    try:
        return set(sa.inspect(engine).get_table_names())
    finally:
        engine.dispose()


def _columns(url: str, table: str) -> set[str]:
    engine = sa.create_engine(url)
    try:
        return {c["name"] for c in sa.inspect(engine).get_columns(table)}
    finally:
        engine.dispose()


def test_upgrade_downgrade_upgrade(alembic_cfg) -> None:
    cfg, url = alembic_cfg

    command.upgrade(cfg, "head")
    assert EXPECTED_TABLES <= _tables(url)
    assert "idempotency_key" in _columns(url, "fiat_wallet_transactions")

    command.downgrade(cfg, "0007_support_tickets")
    assert "idempotency_key" not in _columns(url, "fiat_wallet_transactions")

    command.downgrade(cfg, "base")
    assert _tables(url) <= {"alembic_version"}

    command.upgrade(cfg, "head")
    assert EXPECTED_TABLES <= _tables(url)


def test_revisions_rerun_against_existing_schema(alembic_cfg) -> None:
    cfg, url = alembic_cfg
    command.upgrade(cfg, "head")

    # Forget the recorded revision; every step must skip what already exists.
    command.stamp(cfg, "base", purge=True)
    command.upgrade(cfg, "head")

    engine = sa.create_engine(url)
    try:
        with engine.connect() as conn:
            version = conn.execute(sa.text("SELECT version_num FROM alembic_version")).scalar_one()
        indexes = {i["name"] for i in sa.inspect(engine).get_indexes("fiat_wallet_transactions")}
    finally:
        engine.dispose()

    assert version == "0008_idempotency_and_indexes"
    assert "ix_fiat_wallet_transactions_idempotency_key" in indexes
