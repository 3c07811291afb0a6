"""
onedosh_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and DB sessions.
- Encapsulate app.state access patterns (engine/sessionmaker/provider clients).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from onedosh_api.providers.cards import CardProviderClient
from onedosh_api.providers.exchange import ExchangeProviderClient
from onedosh_api.providers.support import SupportProviderClient
from onedosh_api.settings import Settings, get_settings


def settings_dep() -> Settings:
    return get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in the lifespan of `onedosh_api.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def exchange_client(request: Request) -> ExchangeProviderClient:
    return request.app.state.exchange_client  # type: ignore[attr-defined]


def card_client(request: Request) -> CardProviderClient:
    return request.app.state.card_client  # type: ignore[attr-defined]


def support_client(request: Request) -> SupportProviderClient:
    return request.app.state.support_client  # type: ignore[attr-defined]


# --- Module Notes -----------------------------------------------------------
# Provider clients share the app lifetime; they are closed in the app lifespan.
