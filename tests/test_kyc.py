"""
tests.test_kyc

KYC initiation, review state machine, tiers and approval side effects.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select

from onedosh_api.db.models import UserTier
from tests.helpers import approve_kyc, create_tier, signup


@pytest.mark.asyncio
async def test_status_before_any_verification(client) -> None:
    _, headers = await signup(client, "alice")
    r = await client.get("/v1/kyc/status", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "not_started"
    assert r.json()["id"] is None


@pytest.mark.asyncio
async def test_initiate_requires_active_tier(client, admin_headers) -> None:
    _, headers = await signup(client, "alice")

    r = await client.post("/v1/kyc", json={"level": 1}, headers=headers)
    assert r.status_code == 404

    await create_tier(client, admin_headers, level=1, is_active=False)
    r = await client.post("/v1/kyc", json={"level": 1}, headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_initiate_requires_country(client, admin_headers) -> None:
    _, headers = await signup(client, "nomad", country_code=None)
    await create_tier(client, admin_headers)

    r = await client.post("/v1/kyc", json={"level": 1}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "country_code is required"

    r = await client.post("/v1/kyc", json={"level": 1, "country_code": "ng"}, headers=headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_approval_grants_tier_role_and_points(client, admin_headers, sessionmaker) -> None:
    user_id, headers = await signup(client, "alice")
    await create_tier(client, admin_headers)

    started = (await client.post("/v1/kyc", json={"level": 1}, headers=headers)).json()
    assert started["status"] == "pending"
    assert started["level"] == 1
    assert started["provider"] == "sumsub"
    assert started["attempt"] == 1

    r = await client.post(
        f"/v1/kyc/{started['id']}/review", json={"decision": "approved"}, headers=admin_headers
    )
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert r.json()["reviewed_at"]

    me = (await client.get("/v1/users/me", headers=headers)).json()
    assert set(me["roles"]) == {"user", "active-user"}

    points = (await client.get("/v1/dosh-points/account", headers=headers)).json()
    assert points["balance"] == 300

    async with sessionmaker() as session:
        tier = (await session.execute(select(UserTier))).scalar_one()
    assert str(tier.user_id) == user_id
    assert tier.level == 1

    # A fresh login carries the new role in the token.
    fresh = await client.post("/v1/auth/login", json={"identifier": "alice", "password": "s3cretPass"})
    assert "active-user" in fresh.json()["roles"]


@pytest.mark.asyncio
async def test_approved_kyc_cannot_be_redone_or_restarted(client, admin_headers) -> None:
    _, headers = await signup(client, "alice")
    await create_tier(client, admin_headers, level=1)
    await create_tier(client, admin_headers, level=2)
    await approve_kyc(client, admin_headers, headers, level=1)

    r = await client.post("/v1/kyc", json={"level": 1}, headers=headers)
    assert r.status_code == 409

    r = await client.post("/v1/kyc/restart", headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "KYC already approved; restart is not allowed"

    # Upgrading to a higher tier starts a new verification.
    r = await client.post("/v1/kyc", json={"level": 2}, headers=headers)
    assert r.status_code == 200
    assert r.json()["level"] == 2
    assert r.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_review_state_machine(client, admin_headers) -> None:
    _, headers = await signup(client, "alice")
    await create_tier(client, admin_headers)
    started = (await client.post("/v1/kyc", json={"level": 1}, headers=headers)).json()
    review_url = f"/v1/kyc/{started['id']}/review"

    r = await client.post(review_url, json={"decision": "not_started"}, headers=admin_headers)
    assert r.status_code == 400

    r = await client.post(review_url, json={"decision": "in_review"}, headers=admin_headers)
    assert r.json()["status"] == "in_review"

    r = await client.post(
        review_url,
        json={"decision": "resubmission_requested", "reason": "Blurry selfie"},
        headers=admin_headers,
    )
    assert r.json()["status"] == "resubmission_requested"
    assert r.json()["error_message"] == "Blurry selfie"

    # Terminal until the user restarts.
    r = await client.post(review_url, json={"decision": "approved"}, headers=admin_headers)
    assert r.status_code == 400

    r = await client.post("/v1/kyc/restart", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "pending"
    assert body["attempt"] == 2
    assert body["error_message"] is None

    r = await client.post(review_url, json={"decision": "approved"}, headers=admin_headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_review_requires_permission(client, admin_headers) -> None:
    _, headers = await signup(client, "alice")
    await create_tier(client, admin_headers)
    started = (await client.post("/v1/kyc", json={"level": 1}, headers=headers)).json()

    r = await client.post(f"/v1/kyc/{started['id']}/review", json={"decision": "approved"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Insufficient permission"


@pytest.mark.asyncio
async def test_list_tiers(client, admin_headers) -> None:
    _, headers = await signup(client, "alice")
    await create_tier(client, admin_headers, level=2)
    await create_tier(client, admin_headers, level=1)
    await create_tier(client, admin_headers, level=1, country_code="gh")

    tiers = (await client.get("/v1/kyc/tiers?country_code=NG", headers=headers)).json()
    assert [t["level"] for t in tiers] == [1, 2]
    assert tiers[0]["verification_requirements"] == ["bvn", "selfie"]

    assert len((await client.get("/v1/kyc/tiers", headers=headers)).json()) == 3

