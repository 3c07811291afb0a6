"""
tests.test_transaction_pin

Transaction PIN lifecycle and the progressive lockout applied to PIN-guarded routes.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select, update

from onedosh_api.db.models import TransactionPin, User
from onedosh_api.services.transaction_pin import lockout_for
from tests.helpers import PASSWORD, PIN, fund_wallet, set_pin, signup, with_pin


async def _transfer(client, headers, recipient: str = "bob", amount: int = 100):
    return await client.post(
        "/v1/wallets/transfer",
        json={"recipient": recipient, "asset": "USD", "amount": amount},
        headers=headers,
    )


async def _clear_lockout(sessionmaker) -> None:
    async with sessionmaker() as session:
        await session.execute(update(TransactionPin).values(locked_until=None))
        await session.commit()


def test_lockout_steps() -> None:
    assert lockout_for(1) is None
    assert lockout_for(2) is None
    assert lockout_for(3) == timedelta(minutes=15)
    assert lockout_for(5) == timedelta(minutes=30)
    assert lockout_for(9) == timedelta(minutes=60)


@pytest.mark.asyncio
async def test_set_pin_once(client) -> None:
    _, headers = await signup(client, "alice")
    await set_pin(client, headers)

    me = (await client.get("/v1/users/me", headers=headers)).json()
    assert me["has_transaction_pin"] is True

    r = await client.post("/v1/transaction-pin", json={"pin": PIN, "confirm_pin": PIN}, headers=headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Transaction PIN already set"


@pytest.mark.asyncio
async def test_change_pin(client) -> None:
    _, headers = await signup(client, "alice")

    body = {"old_pin": PIN, "pin": "654321", "confirm_pin": "654321"}
    r = await client.patch("/v1/transaction-pin", json=body, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Transaction PIN not set"

    await set_pin(client, headers)

    r = await client.patch("/v1/transaction-pin", json={**body, "old_pin": "000000"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["type"] == "BadRequest"
    assert r.json()["message"] == "Old transaction PIN is incorrect"

    r = await client.patch(
        "/v1/transaction-pin", json={"old_pin": PIN, "pin": PIN, "confirm_pin": PIN}, headers=headers
    )
    assert r.status_code == 400
    assert "different" in r.json()["message"]

    r = await client.patch("/v1/transaction-pin", json=body, headers=headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_guarded_route_requires_pin(client, admin_headers) -> None:
    alice_id, headers = await signup(client, "alice")
    await signup(client, "bob")
    await fund_wallet(client, admin_headers, alice_id, 1_000)

    r = await _transfer(client, headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Transaction PIN is required"

    r = await _transfer(client, with_pin(headers))
    assert r.status_code == 400
    assert r.json()["message"] == "Transaction PIN not set"

    await set_pin(client, headers)
    r = await _transfer(client, with_pin(headers))
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_failed_attempts_rate_limit_then_lock(client, admin_headers, sessionmaker) -> None:
    alice_id, headers = await signup(client, "alice")
    await signup(client, "bob")
    await fund_wallet(client, admin_headers, alice_id, 1_000)
    await set_pin(client, headers)
    wrong = with_pin(headers, "999999")

    r = await _transfer(client, wrong)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid transaction PIN. 4 attempt(s) left."
    await _transfer(client, wrong)
    r = await _transfer(client, wrong)
    assert r.json()["message"] == "Invalid transaction PIN. 2 attempt(s) left."

    # Third failure opens a 15 minute window; even the right PIN is refused.
    r = await _transfer(client, with_pin(headers))
    assert r.status_code == 429
    body = r.json()
    assert body["type"] == "ERR_USER_PIN_RATE_LIMITED"
    assert "15 minute(s)" in body["message"]

    await _clear_lockout(sessionmaker)
    await _transfer(client, wrong)
    await _clear_lockout(sessionmaker)
    r = await _transfer(client, wrong)
    assert r.status_code == 423
    assert r.json()["type"] == "ERR_USER_PIN_LOCKED"

    async with sessionmaker() as session:
        user = (await session.execute(select(User).where(User.username == "alice"))).scalar_one()
        assert user.require_transaction_pin_reset is True

    r = await _transfer(client, with_pin(headers))
    assert r.status_code == 423

    # Reset with a password-verification token unlocks the account.
    r = await client.post("/v1/users/me/verify-password", json={"password": PASSWORD}, headers=headers)
    token = r.json()["verification_token"]
    r = await client.post(
        "/v1/transaction-pin/reset",
        json={"verification_token": token, "pin": "246810", "confirm_pin": "246810"},
        headers=headers,
    )
    assert r.status_code == 200, r.text

    r = await _transfer(client, with_pin(headers, "246810"))
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_successful_pin_resets_counter(client, admin_headers, sessionmaker) -> None:
    alice_id, headers = await signup(client, "alice")
    await signup(client, "bob")
    await fund_wallet(client, admin_headers, alice_id, 1_000)
    await set_pin(client, headers)

    await _transfer(client, with_pin(headers, "999999"))
    r = await _transfer(client, with_pin(headers))
    assert r.status_code == 200

    async with sessionmaker() as session:
        row = (await session.execute(select(TransactionPin))).scalar_one()
        assert row.failed_attempts == 0


@pytest.mark.asyncio
async def test_reset_token_is_single_use(client) -> None:
    _, headers = await signup(client, "alice")
    await set_pin(client, headers)
    r = await client.post("/v1/users/me/verify-password", json={"password": PASSWORD}, headers=headers)
    token = r.json()["verification_token"]
    body = {"verification_token": token, "pin": "111222", "confirm_pin": "111222"}

    assert (await client.post("/v1/transaction-pin/reset", json=body, headers=headers)).status_code == 200
    r = await client.post("/v1/transaction-pin/reset", json=body, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid verification token"

    r = await client.post(
        "/v1/transaction-pin/reset",
        json={**body, "verification_token": "made-up"},
        headers=headers,
    )
    assert r.status_code == 400
