"""
tests.test_permissions

Token validation and RBAC dependency checks.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException

from onedosh_api.auth.deps import require_permissions, require_roles
from onedosh_api.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, issue_token
from onedosh_api.auth.models import Principal
from onedosh_api.db.repositories.users import UserRepo
from tests.helpers import login, signup


def _principal(*roles: str, permissions: tuple[str, ...] = ()) -> Principal:
    return Principal(subject="u-1", roles=frozenset(roles), permissions=frozenset(permissions))


def test_require_roles() -> None:
    dep = require_roles("admin")
    assert dep(principal=_principal("admin", "user")).subject == "u-1"
    assert dep(principal=_principal("super-admin")).is_super_admin

    with pytest.raises(HTTPException) as ei:
        dep(principal=_principal("user"))
    assert ei.value.status_code == 403


def test_require_permissions() -> None:
    dep = require_permissions("wallets:fund", "users:manage")
    dep(principal=_principal("admin", permissions=("wallets:fund", "users:manage", "kyc:review")))

    with pytest.raises(HTTPException) as ei:
        dep(principal=_principal("admin", permissions=("wallets:fund",)))
    assert ei.value.detail == "Insufficient permission"


def test_token_round_trip_and_audience_check(settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    token = issue_token(
        cfg=cfg,
        subject="abc",
        roles=["user"],
        permissions=["points:manage"],
        ttl=timedelta(minutes=1),
    )
    claims = decode_and_validate(cfg=cfg, token=token)
    assert claims["sub"] == "abc"
    assert claims["permissions"] == ["points:manage"]

    other = JwtConfig(alg=cfg.alg, issuer=cfg.issuer, audience="someone-else", secret=cfg.secret)
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=other, token=token)


def test_expired_token_is_rejected(settings) -> None:
    cfg = JwtConfig.from_settings(settings)
    token = issue_token(cfg=cfg, subject="abc", roles=[], ttl=timedelta(seconds=-30))
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=cfg, token=token)


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_rejected(client, settings) -> None:
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(uuid.uuid4()),
        roles=["user"],
        ttl=timedelta(minutes=5),
    )
    r = await client.get("/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "User not found"
    assert r.json()["type"] == "Unauthorized"


async def _grant_admin(sessionmaker, user_id: str) -> None:
    async with sessionmaker() as session:
        repo = UserRepo(session)
        await repo.add_role(await repo.get(uuid.UUID(user_id)), "admin")
        await session.commit()


@pytest.mark.asyncio
async def test_admin_role_grants_back_office_permissions(client, sessionmaker) -> None:
    user_id, headers = await signup(client, "operator")

    r = await client.get("/v1/users", headers=headers)
    assert r.status_code == 403

    await _grant_admin(sessionmaker, user_id)

    # Roles are read from the user row, so the existing token picks up the grant.
    r = await client.get("/v1/users", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 1
    assert body["items"][0]["username"] == "operator"


@pytest.mark.asyncio
async def test_deactivated_admin_token_loses_back_office_access(client, admin_headers, sessionmaker) -> None:
    admin_id, _ = await signup(client, "opadmin")
    victim_id, _ = await signup(client, "victim")
    await _grant_admin(sessionmaker, admin_id)
    op_headers = await login(client, "opadmin")

    r = await client.post(f"/v1/users/{admin_id}/deactivate", headers=admin_headers)
    assert r.status_code == 200

    r = await client.post(f"/v1/users/{victim_id}/deactivate", headers=op_headers)
    assert r.status_code == 403
    assert r.json()["type"] == "ERR_USER_ACCOUNT_DEACTIVATED"

    r = await client.post(
        "/v1/wallets/admin/credit",
        json={"user_id": admin_id, "asset": "USD", "amount": 1_000_000},
        headers=op_headers,
    )
    assert r.status_code == 403

    async with sessionmaker() as session:
        victim = await UserRepo(session).get(uuid.UUID(victim_id))
        assert victim.is_deactivated is False


@pytest.mark.asyncio
async def test_revoked_role_applies_to_issued_token(client, sessionmaker) -> None:
    admin_id, _ = await signup(client, "opadmin")
    await _grant_admin(sessionmaker, admin_id)
    op_headers = await login(client, "opadmin")
    assert (await client.get("/v1/users", headers=op_headers)).status_code == 200

    async with sessionmaker() as session:
        user = await UserRepo(session).get(uuid.UUID(admin_id))
        user.roles = [r for r in user.roles if r.slug != "admin"]
        await session.commit()

    r = await client.get("/v1/users", headers=op_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Insufficient permission"
