"""
onedosh_api.services.rates

Exchange rate service.

Responsibilities:
- Quote buy/sell rates for a currency against USD from the active provider.
- Store each distinct quote once and hand back its id for later validation.
- Attach the provider's configured fee structure to every quote.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.db.models import ExchangeRate, RateConfig
from onedosh_api.db.repositories.rates import ExchangeRateRepo, RateConfigRepo
from onedosh_api.errors import BadRequestError, NotFoundError
from onedosh_api.observability.logging import get_logger
from onedosh_api.providers.exchange import ExchangeProviderClient
from onedosh_api.settings import Settings

log = get_logger(__name__)

BASE_CURRENCY = "USD"

# Rates are stored as integers with two implied decimals (1520.35 -> 152035).
RATE_SCALE = 100

FEE_KEYS = ("service_fee", "partner_fee", "disbursement_fee", "ngn_withdrawal_fee")


class RateType(enum.StrEnum):
    buy = "buy"
    sell = "sell"


@dataclass(frozen=True, slots=True)
class RateQuote:
    rate: ExchangeRate
    fees: dict[str, Any]


def to_rate_units(value: float) -> int:
    return int(round(value * RATE_SCALE))


def convert(amount: int, rate: int) -> int:
    """
    Convert a smallest-unit amount with a scaled rate, rounding down.
    """

    return amount * rate // RATE_SCALE


def flatten_fees(fiat_exchange: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in FEE_KEYS:
        fee = fiat_exchange.get(key) or {}
        out[key] = fee.get("value", 0)
        out[f"{key}_currency"] = fee.get("currency")
        out[f"is_{key}_percentage"] = bool(fee.get("is_percentage", False))
        out[f"{key}_cap"] = fee.get("cap")
    return out


class RateService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        client: ExchangeProviderClient | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._client = client
        self._configs = RateConfigRepo(session)
        self._rates = ExchangeRateRepo(session)

    @property
    def provider(self) -> str:
        return self._settings.exchange_provider_name

    async def get_rate(self, *, currency_code: str, rate_type: RateType) -> RateQuote:
        if self._client is None:
            raise RuntimeError("exchange provider client is not configured")

        config = await self._configs.get_by_provider(self.provider)
        if config is None or not config.is_active:
            raise BadRequestError(f"No active rate configuration for provider {self.provider}")

        code = currency_code.strip().upper()
        entry = next((r for r in await self._client.get_rates() if r.code == code), None)
        if entry is None:
            raise NotFoundError(f"Rate not found for currency {code}")

        if rate_type == RateType.buy:
            provider_value, buying, selling = entry.sell, code, BASE_CURRENCY
        else:
            provider_value, buying, selling = entry.buy, BASE_CURRENCY, code

        value = to_rate_units(provider_value)
        if value <= 0:
            raise BadRequestError(f"Provider returned an invalid rate for {code}")

        row = await self._rates.find_identical(
            provider=self.provider,
            buying_currency_code=buying,
            selling_currency_code=selling,
            rate=value,
        )
        if row is None:
            row = await self._rates.add(
                ExchangeRate(
                    provider=self.provider,
                    buying_currency_code=buying,
                    selling_currency_code=selling,
                    rate=value,
                    provider_rate=value,
                    provider_rate_ref=entry.rate_ref,
                )
            )
            await self._session.commit()
            log.info("exchange_rate_stored", rate_id=str(row.id), pair=f"{buying}/{selling}", rate=value)

        return RateQuote(rate=row, fees=flatten_fees(config.fiat_exchange))

    async def validate_rate_or_throw(self, rate_id: uuid.UUID) -> ExchangeRate:
        """
        Accept a previously quoted rate only while the provider still quotes it.
        """

        row = await self._rates.get(rate_id)
        if row is None:
            raise NotFoundError("Exchange rate not found")
        if row.rate <= 0:
            raise BadRequestError("Exchange rate is invalid")
        if not row.provider:
            raise BadRequestError("Exchange rate has no provider")

        if row.buying_currency_code == BASE_CURRENCY:
            currency_code, rate_type = row.selling_currency_code, RateType.sell
        else:
            currency_code, rate_type = row.buying_currency_code, RateType.buy

        current = await self.get_rate(currency_code=currency_code, rate_type=rate_type)
        if current.rate.rate != row.rate:
            log.info(
                "exchange_rate_mismatch",
                rate_id=str(row.id),
                stored=row.rate,
                current=current.rate.rate,
            )
            raise BadRequestError("Exchange rate mismatch")
        return row

    async def upsert_config(
        self,
        *,
        provider: str,
        is_active: bool,
        description: str | None,
        fiat_exchange: dict[str, Any],
    ) -> RateConfig:
        row = await self._configs.get_by_provider(provider)
        if row is None:
            row = await self._configs.add(RateConfig(provider=provider))
        row.is_active = is_active
        row.description = description
        row.config = {**(row.config or {}), "fiat_exchange": fiat_exchange}
        await self._session.commit()
        log.info("rate_config_saved", provider=provider, is_active=is_active)
        return row
