"""
tests.conftest

Shared fixtures: an app bound to a throwaway SQLite file with faked providers,
its session factory and a super-admin token.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import timedelta
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from onedosh_api.api.app import create_app
from onedosh_api.auth.jwt import JwtConfig, issue_token
from onedosh_api.auth.passwords import hash_password
from onedosh_api.db.repositories.users import UserRepo
from onedosh_api.db.seeds import SUPER_ADMIN
from onedosh_api.settings import Settings
from tests.helpers import PASSWORD, FakeProviders


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'onedosh-test.db'}",
        jwt_secret="onedosh-test-secret-at-least-32-bytes",
        log_level="WARNING",
    )


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest_asyncio.fixture
async def app(settings: Settings, providers: FakeProviders) -> AsyncIterator[FastAPI]:
    application = create_app(settings=settings, provider_transport=httpx.MockTransport(providers.handler))
    # httpx ASGITransport does not drive lifespan events; run them explicitly.
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def sessionmaker(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    return app.state.sessionmaker


@pytest_asyncio.fixture
async def admin_headers(
    settings: Settings, sessionmaker: async_sessionmaker[AsyncSession]
) -> dict[str, str]:
    async with sessionmaker() as session:
        repo = UserRepo(session)
        admin = await repo.create(
            roles=await repo.roles_by_slugs([SUPER_ADMIN]),
            first_name="Root",
            last_name="Operator",
            username="root-operator",
            email="root-operator@example.com",
            password=hash_password(PASSWORD),
        )
        await session.commit()

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(admin.id),
        roles=[SUPER_ADMIN],
        ttl=timedelta(minutes=5),
    )
    return {"Authorization": f"Bearer {token}"}
