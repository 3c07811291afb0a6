"""
tests.test_dosh_points

Points crediting rules, account balance, history and events.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import update

from onedosh_api.db.base import utcnow
from onedosh_api.db.models import DoshPointsEvent
from onedosh_api.errors import DoshPointsError, DoshPointsErrorType
from onedosh_api.services.dosh_points import DoshPointsService, idempotency_key
from tests.helpers import signup


async def _credit(client, admin_headers, user_id: str, event_code: str, source: str, **extra):
    return await client.post(
        "/v1/dosh-points/admin/credit",
        json={"user_id": user_id, "event_code": event_code, "source_reference": source, **extra},
        headers=admin_headers,
    )


def test_idempotency_key_shape() -> None:
    uid = uuid.UUID("00000000-0000-0000-0000-000000000001")
    assert idempotency_key(uid, "KYC_APPROVED", "ref-1") == f"{uid}_KYC_APPROVED_ref-1"


@pytest.mark.asyncio
async def test_repeatable_event_is_idempotent_per_source(client, admin_headers) -> None:
    user_id, headers = await signup(client, "alice")

    first = await _credit(client, admin_headers, user_id, "WALLET_TRANSFER", "trf-1")
    assert first.status_code == 200
    assert first.json()["is_duplicate"] is False
    tx = first.json()["transaction"]
    assert (tx["balance_before"], tx["balance_after"], tx["amount"]) == (100, 105, 5)

    again = await _credit(client, admin_headers, user_id, "WALLET_TRANSFER", "trf-1")
    assert again.json()["is_duplicate"] is True
    assert again.json()["transaction"]["id"] == tx["id"]

    other = await _credit(client, admin_headers, user_id, "WALLET_TRANSFER", "trf-2", amount=20)
    assert other.json()["transaction"]["amount"] == 20

    account = (await client.get("/v1/dosh-points/account", headers=headers)).json()
    assert account["balance"] == 125
    assert account["status"] == "active"


@pytest.mark.asyncio
async def test_one_time_event_rejects_second_source(client, admin_headers) -> None:
    user_id, _ = await signup(client, "alice")

    r = await _credit(client, admin_headers, user_id, "REGISTRATION_BONUS", user_id)
    assert r.status_code == 200
    assert r.json()["is_duplicate"] is True

    r = await _credit(client, admin_headers, user_id, "REGISTRATION_BONUS", "another-source")
    assert r.status_code == 409
    assert r.json()["type"] == "ALREADY_EARNED"
    assert r.json()["data"] == {"event_code": "REGISTRATION_BONUS"}


@pytest.mark.asyncio
async def test_unknown_inactive_and_expired_events(client, admin_headers, sessionmaker) -> None:
    user_id, _ = await signup(client, "alice")

    r = await _credit(client, admin_headers, user_id, "NOPE", "x")
    assert r.status_code == 404
    assert r.json()["type"] == "EVENT_NOT_FOUND"

    async with sessionmaker() as session:
        await session.execute(
            update(DoshPointsEvent)
            .where(DoshPointsEvent.code == "WALLET_TRANSFER")
            .values(end_date=utcnow() - timedelta(days=1))
        )
        await session.commit()

    r = await _credit(client, admin_headers, user_id, "WALLET_TRANSFER", "x")
    assert r.status_code == 400
    assert r.json()["type"] == "EVENT_INACTIVE"


@pytest.mark.asyncio
async def test_registration_survives_disabled_bonus(client, sessionmaker) -> None:
    async with sessionmaker() as session:
        await session.execute(
            update(DoshPointsEvent).where(DoshPointsEvent.code == "REGISTRATION_BONUS").values(is_active=False)
        )
        await session.commit()

    _, headers = await signup(client, "alice")
    account = (await client.get("/v1/dosh-points/account", headers=headers)).json()
    assert account["balance"] == 0


@pytest.mark.asyncio
async def test_history_newest_first_and_paginated(client, admin_headers) -> None:
    user_id, headers = await signup(client, "alice")
    for i in range(3):
        await _credit(client, admin_headers, user_id, "WALLET_TRANSFER", f"trf-{i}")

    page = (await client.get("/v1/dosh-points/history?limit=2", headers=headers)).json()
    assert page["total"] == 4
    assert page["limit"] == 2
    assert [t["source_reference"] for t in page["items"]] == ["trf-2", "trf-1"]

    page = (await client.get("/v1/dosh-points/history?page=2&limit=2", headers=headers)).json()
    assert [t["event_code"] for t in page["items"]] == ["WALLET_TRANSFER", "REGISTRATION_BONUS"]


@pytest.mark.asyncio
async def test_list_events(client) -> None:
    _, headers = await signup(client, "alice")
    events = {e["code"]: e for e in (await client.get("/v1/dosh-points/events", headers=headers)).json()}
    assert events["KYC_APPROVED"]["default_points"] == 200
    assert events["KYC_APPROVED"]["is_one_time_per_user"] is True
    assert events["WALLET_TRANSFER"]["is_one_time_per_user"] is False


@pytest.mark.asyncio
async def test_admin_credit_requires_permission(client) -> None:
    user_id, headers = await signup(client, "alice")
    r = await _credit(client, headers, user_id, "WALLET_TRANSFER", "x")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_failed_credit_rolls_back(sessionmaker, client) -> None:
    user_id, _ = await signup(client, "alice")
    async with sessionmaker() as session:
        svc = DoshPointsService(session=session)
        with pytest.raises(DoshPointsError) as ei:
            await svc.credit_points(
                user_id=uuid.UUID(user_id), event_code="REGISTRATION_BONUS", source_reference="dup"
            )
        assert ei.value.type == DoshPointsErrorType.already_earned.value

        account = await svc.get_account(uuid.UUID(user_id))
        assert account.balance == 100
