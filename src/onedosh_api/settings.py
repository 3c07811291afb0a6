"""
onedosh_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, provider API keys).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration:
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="ONEDOSH_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and error verbosity.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "onedosh-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "onedosh-api"
    jwt_audience: str = "onedosh-app"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_minutes: int = 60
    verification_token_ttl_minutes: int = 10
    transaction_pin_max_attempts: int = 5

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./onedosh.db"

    # Wallets
    supported_currencies: list[str] = Field(default_factory=lambda: ["USD", "NGN"])

    # Providers
    exchange_provider_name: str = "yellowcard"
    exchange_provider_base_url: str = "http://localhost:9001"
    exchange_provider_api_key: str = Field(default="", repr=False)

    card_provider_name: str = "rain"
    card_provider_base_url: str = "http://localhost:9002"
    card_provider_api_key: str = Field(default="", repr=False)

    support_provider_name: str = "zendesk"
    support_provider_base_url: str = "http://localhost:9003"
    support_provider_api_key: str = Field(default="", repr=False)

    kyc_provider_name: str = "sumsub"

    provider_timeout_seconds: float = 15.0

    @property
    def is_production(self) -> bool:
        return self.env == "prod"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Provider credentials are read here only; clients receive them via constructor args.
