"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and DB readiness probe works in test mode.
- Ensure reference data is seeded on startup.
"""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy import select

from onedosh_api.api.app import create_app
from onedosh_api.db.models import DoshPointsEvent, Role
from onedosh_api.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(settings: Settings) -> None:
    app = create_app(settings=settings)

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/healthz")
            assert r.status_code == 200
            assert r.json() == {"status": "ok", "service": "onedosh-api", "env": "test"}

            r = await client.get("/readyz")
            assert r.status_code == 200
            assert r.json()["status"] == "ready"
            assert r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_startup_seeds_reference_data(sessionmaker) -> None:
    async with sessionmaker() as session:
        slugs = set((await session.execute(select(Role.slug))).scalars().all())
        codes = set((await session.execute(select(DoshPointsEvent.code))).scalars().all())

    assert {"super-admin", "admin", "user", "active-user"} <= slugs
    assert "REGISTRATION_BONUS" in codes


@pytest.mark.asyncio
async def test_seeding_twice_is_idempotent(sessionmaker) -> None:
    from onedosh_api.db.seeds import seed_reference_data
    from onedosh_api.db.session import session_scope

    async with session_scope(sessionmaker) as session:
        await seed_reference_data(session)

    async with sessionmaker() as session:
        roles = (await session.execute(select(Role))).scalars().all()
        admin = next(r for r in roles if r.slug == "admin")

    assert len(roles) == 4
    assert len({p.slug for p in admin.permissions}) == len(admin.permissions)


# --- Module Notes -----------------------------------------------------------
# Domain flows are covered in the per-router test modules.
