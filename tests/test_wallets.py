"""
tests.test_wallets

Wallet balances, transfers, admin credits and the ledger rows behind them.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from onedosh_api.db.models import FiatWalletTransaction, Transaction, TransactionType
from onedosh_api.errors import InsufficientBalanceError
from onedosh_api.services.wallets import WalletService
from tests.helpers import fund_wallet, set_pin, signup, with_pin


def _balance(wallets: list[dict], asset: str) -> int:
    return next(w["balance"] for w in wallets if w["asset"] == asset)


@pytest.mark.asyncio
async def test_admin_credit_and_history(client, admin_headers) -> None:
    user_id, headers = await signup(client, "alice")
    await fund_wallet(client, admin_headers, user_id, 2_500)
    await fund_wallet(client, admin_headers, user_id, 500)

    wallets = (await client.get("/v1/wallets", headers=headers)).json()
    assert _balance(wallets, "USD") == 3_000
    assert _balance(wallets, "NGN") == 0

    page = (await client.get("/v1/wallets/usd/transactions", headers=headers)).json()
    assert page["total"] == 2
    newest = page["items"][0]
    assert newest["amount"] == 500
    assert newest["balance_before"] == 2_500
    assert newest["balance_after"] == 3_000
    assert newest["transaction_type"] == "deposit"


@pytest.mark.asyncio
async def test_admin_credit_is_idempotent(client, admin_headers, sessionmaker) -> None:
    user_id, headers = await signup(client, "alice")
    body = {"user_id": user_id, "asset": "NGN", "amount": 700, "idempotency_key": "deposit-1"}

    first = await client.post("/v1/wallets/admin/credit", json=body, headers=admin_headers)
    second = await client.post("/v1/wallets/admin/credit", json=body, headers=admin_headers)
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    wallets = (await client.get("/v1/wallets", headers=headers)).json()
    assert _balance(wallets, "NGN") == 700

    async with sessionmaker() as session:
        count = (await session.execute(select(func.count()).select_from(FiatWalletTransaction))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_admin_credit_requires_permission(client, admin_headers) -> None:
    user_id, headers = await signup(client, "alice")
    r = await client.post(
        "/v1/wallets/admin/credit",
        json={"user_id": user_id, "asset": "USD", "amount": 10},
        headers=headers,
    )
    assert r.status_code == 403

    r = await client.post(
        "/v1/wallets/admin/credit",
        json={"user_id": user_id, "asset": "EUR", "amount": 10},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Unsupported currency EUR"


@pytest.mark.asyncio
async def test_transfer_moves_balance_between_users(client, admin_headers, sessionmaker) -> None:
    alice_id, alice = await signup(client, "alice")
    _, bob = await signup(client, "bob")
    await fund_wallet(client, admin_headers, alice_id, 1_000)
    await set_pin(client, alice)

    r = await client.post(
        "/v1/wallets/transfer",
        json={"recipient": "bob@example.com", "asset": "usd", "amount": 400, "description": "lunch"},
        headers=with_pin(alice),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["reference"].startswith("TRF-")
    assert body["debit"]["amount"] == -400
    assert body["debit"]["destination"] == "bob"

    assert _balance((await client.get("/v1/wallets", headers=alice)).json(), "USD") == 600
    assert _balance((await client.get("/v1/wallets", headers=bob)).json(), "USD") == 400

    points = (await client.get("/v1/dosh-points/account", headers=alice)).json()
    assert points["balance"] == 105

    async with sessionmaker() as session:
        refs = set(
            (
                await session.execute(
                    select(Transaction.reference).where(Transaction.reference.like(f"{body['reference']}%"))
                )
            )
            .scalars()
            .all()
        )
    assert refs == {f"{body['reference']}-D", f"{body['reference']}-C"}


@pytest.mark.asyncio
async def test_transfer_rejects_overdraft_and_self(client, admin_headers) -> None:
    alice_id, alice = await signup(client, "alice")
    await signup(client, "bob")
    await fund_wallet(client, admin_headers, alice_id, 100)
    await set_pin(client, alice)

    r = await client.post(
        "/v1/wallets/transfer",
        json={"recipient": "bob", "asset": "USD", "amount": 101},
        headers=with_pin(alice),
    )
    assert r.status_code == 400
    assert r.json()["type"] == "InsufficientBalance"

    r = await client.post(
        "/v1/wallets/transfer",
        json={"recipient": "alice", "asset": "USD", "amount": 1},
        headers=with_pin(alice),
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot transfer to yourself"

    r = await client.post(
        "/v1/wallets/transfer",
        json={"recipient": "nobody", "asset": "USD", "amount": 1},
        headers=with_pin(alice),
    )
    assert r.status_code == 404

    # Nothing moved.
    assert _balance((await client.get("/v1/wallets", headers=alice)).json(), "USD") == 100


@pytest.mark.asyncio
async def test_transfer_amount_must_be_positive(client) -> None:
    _, alice = await signup(client, "alice")
    await set_pin(client, alice)
    r = await client.post(
        "/v1/wallets/transfer",
        json={"recipient": "bob", "asset": "USD", "amount": 0},
        headers=with_pin(alice),
    )
    assert r.status_code == 400
    assert r.json()["type"] == "ValidationError"


@pytest.mark.asyncio
async def test_update_balance_service(client, settings, sessionmaker) -> None:
    user_id, _ = await signup(client, "alice")
    async with sessionmaker() as session:
        svc = WalletService(session=session, settings=settings)
        wallet = await svc.get_wallet(uuid.UUID(user_id), "NGN")
        await session.commit()

        row = await svc.update_balance(
            wallet_id=wallet.id,
            amount=1_000,
            transaction_type=TransactionType.deposit,
            idempotency_key="ngn-topup-1",
        )
        assert (row.balance_before, row.balance_after) == (0, 1_000)

        replay = await svc.update_balance(
            wallet_id=wallet.id,
            amount=1_000,
            transaction_type=TransactionType.deposit,
            idempotency_key="ngn-topup-1",
        )
        assert replay.id == row.id

        with pytest.raises(InsufficientBalanceError):
            await svc.update_balance(
                wallet_id=wallet.id, amount=-1_001, transaction_type=TransactionType.withdrawal
            )

        await svc.update_balance(wallet_id=wallet.id, amount=-400, transaction_type=TransactionType.withdrawal)
        fresh = await svc.get_wallet(uuid.UUID(user_id), "NGN")
        assert fresh.balance == 600
