"""
onedosh_api.api.app

FastAPI app factory for the OneDosh API.

Responsibilities:
- Build the FastAPI application and register routers/middleware/exception handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, provider clients).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from onedosh_api import __version__
from onedosh_api.api.deps import settings_dep
from onedosh_api.api.errors import register_exception_handlers
from onedosh_api.api.routers.auth import router as auth_router
from onedosh_api.api.routers.cards import router as cards_router
from onedosh_api.api.routers.dosh_points import router as dosh_points_router
from onedosh_api.api.routers.health import router as health_router
from onedosh_api.api.routers.kyc import router as kyc_router
from onedosh_api.api.routers.rates import router as rates_router
from onedosh_api.api.routers.support import router as support_router
from onedosh_api.api.routers.transaction_pin import router as transaction_pin_router
from onedosh_api.api.routers.users import router as users_router
from onedosh_api.api.routers.wallets import router as wallets_router
from onedosh_api.db.init_db import init_db
from onedosh_api.db.session import create_engine, create_sessionmaker
from onedosh_api.observability.logging import configure_logging, get_logger
from onedosh_api.observability.middleware import RequestContextMiddleware
from onedosh_api.providers.cards import CardProviderClient
from onedosh_api.providers.exchange import ExchangeProviderClient
from onedosh_api.providers.support import SupportProviderClient
from onedosh_api.settings import Settings, get_settings

log = get_logger(__name__)


def _http(
    settings: Settings, base_url: str, transport: httpx.AsyncBaseTransport | None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=settings.provider_timeout_seconds,
        transport=transport,
    )


def create_app(
    *,
    settings: Settings,
    provider_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    `provider_transport` replaces the network for every provider client (tests use
    `httpx.MockTransport`).
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await init_db(engine, app.state.sessionmaker)

        app.state.exchange_client = ExchangeProviderClient(
            name=settings.exchange_provider_name,
            http=_http(settings, settings.exchange_provider_base_url, provider_transport),
            api_key=settings.exchange_provider_api_key,
        )
        app.state.card_client = CardProviderClient(
            name=settings.card_provider_name,
            http=_http(settings, settings.card_provider_base_url, provider_transport),
            api_key=settings.card_provider_api_key,
        )
        app.state.support_client = SupportProviderClient(
            name=settings.support_provider_name,
            http=_http(settings, settings.support_provider_base_url, provider_transport),
            api_key=settings.support_provider_api_key,
        )
        try:
            yield
        finally:
            for name in ("exchange_client", "card_client", "support_client"):
                await getattr(app.state, name).aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="OneDosh API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Every layer sees the settings object this app was built with.
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[settings_dep] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app, settings)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(transaction_pin_router)
    app.include_router(wallets_router)
    app.include_router(kyc_router)
    app.include_router(cards_router)
    app.include_router(rates_router)
    app.include_router(dosh_points_router)
    app.include_router(support_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic stays in routers/services.
