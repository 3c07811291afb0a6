"""
tests.helpers

Fake provider endpoints and small helpers for creating users, PINs and balances.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

PASSWORD = "s3cretPass"
PIN = "123456"


class FakeProviders:
    """
    In-process stand-in for the exchange, card and support providers.
    """

    def __init__(self) -> None:
        self.rates: list[dict[str, Any]] = [
            {"code": "NGN", "buy": 1500.0, "sell": 1520.5, "rateId": "yc-ngn-1"},
            {"code": "GHS", "buy": 14.2, "sell": 14.9, "rateId": "yc-ghs-1"},
        ]
        self.card_user_status = "approved"
        self.ticket: dict[str, Any] = {"id": 4242, "status": "new"}
        self.fail_paths: set[str] = set()
        self.raw_bodies: dict[str, bytes] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self._cards = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else {}
        self.calls.append((request.method, path, body))

        if path in self.fail_paths:
            return httpx.Response(503, json={"error": "unavailable"})
        if path in self.raw_bodies:
            return httpx.Response(200, content=self.raw_bodies[path])
        if path == "/business/rates":
            return httpx.Response(200, json={"rates": self.rates})
        if path == "/issuing/users" and request.method == "POST":
            return httpx.Response(200, json={"id": "cu_1", "applicationStatus": self.card_user_status})
        if path.startswith("/issuing/users/") and path.endswith("/cards"):
            self._cards += 1
            return httpx.Response(200, json={"id": f"card_{self._cards}", "last4": "4242", "status": "active"})
        if path.startswith("/issuing/cards/"):
            return httpx.Response(200, json={"id": path.rsplit("/", 1)[-1], "status": body.get("status")})
        if path == "/api/v2/tickets.json":
            return httpx.Response(201, json={"ticket": self.ticket})
        return httpx.Response(404, json={"error": "not found"})

    def calls_to(self, prefix: str) -> list[tuple[str, str, dict[str, Any]]]:
        return [c for c in self.calls if c[1].startswith(prefix)]


async def register(client: httpx.AsyncClient, username: str, **overrides: Any) -> dict[str, Any]:
    body = {
        "email": f"{username}@example.com",
        "username": username,
        "password": PASSWORD,
        "first_name": username.capitalize(),
        "last_name": "Tester",
        "country_code": "NG",
    }
    body.update(overrides)
    r = await client.post("/v1/auth/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()


async def login(client: httpx.AsyncClient, identifier: str, password: str = PASSWORD) -> dict[str, str]:
    r = await client.post("/v1/auth/login", json={"identifier": identifier, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


async def signup(client: httpx.AsyncClient, username: str, **overrides: Any) -> tuple[str, dict[str, str]]:
    """
    Register + login; returns (user id, auth headers).
    """

    created = await register(client, username, **overrides)
    return created["id"], await login(client, username)


async def set_pin(client: httpx.AsyncClient, headers: dict[str, str], pin: str = PIN) -> None:
    r = await client.post("/v1/transaction-pin", json={"pin": pin, "confirm_pin": pin}, headers=headers)
    assert r.status_code == 200, r.text


def with_pin(headers: dict[str, str], pin: str = PIN) -> dict[str, str]:
    return {**headers, "X-Transaction-Pin": pin}


async def fund_wallet(
    client: httpx.AsyncClient,
    admin_headers: dict[str, str],
    user_id: str,
    amount: int,
    asset: str = "USD",
) -> None:
    r = await client.post(
        "/v1/wallets/admin/credit",
        json={"user_id": user_id, "asset": asset, "amount": amount},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text


async def create_tier(
    client: httpx.AsyncClient,
    admin_headers: dict[str, str],
    level: int = 1,
    country_code: str = "NG",
    **overrides: Any,
) -> dict[str, Any]:
    body = {
        "country_code": country_code,
        "level": level,
        "name": f"Tier {level}",
        "maximum_single_transaction": 100_000 * level,
        "maximum_daily_transaction": 500_000 * level,
        "verification_requirements": ["bvn", "selfie"],
    }
    body.update(overrides)
    r = await client.post("/v1/kyc/tiers", json=body, headers=admin_headers)
    assert r.status_code == 201, r.text
    return r.json()


async def approve_kyc(
    client: httpx.AsyncClient,
    admin_headers: dict[str, str],
    headers: dict[str, str],
    level: int = 1,
) -> dict[str, Any]:
    """
    Start a verification for the caller and approve it as a reviewer.
    """

    r = await client.post("/v1/kyc", json={"level": level}, headers=headers)
    assert r.status_code == 200, r.text
    r = await client.post(
        f"/v1/kyc/{r.json()['id']}/review", json={"decision": "approved"}, headers=admin_headers
    )
    assert r.status_code == 200, r.text
    return r.json()
