"""
onedosh_api.api.routers.rates

Exchange rate endpoints.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.api.deps import db_session, exchange_client, settings_dep
from onedosh_api.auth.deps import get_current_user, require_permissions
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import User
from onedosh_api.providers.exchange import ExchangeProviderClient
from onedosh_api.services.rates import RATE_SCALE, RateService, RateType
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/rates", tags=["rates"])


class FeeDto(BaseModel):
    value: float = Field(ge=0)
    currency: str | None = Field(default=None, max_length=8)
    is_percentage: bool = False
    cap: float | None = Field(default=None, ge=0)


class RateConfigDto(BaseModel):
    provider: str = Field(min_length=1, max_length=64)
    is_active: bool = True
    description: str | None = None
    service_fee: FeeDto | None = None
    partner_fee: FeeDto | None = None
    disbursement_fee: FeeDto | None = None
    ngn_withdrawal_fee: FeeDto | None = None


class RateConfigResponse(BaseModel):
    id: uuid.UUID
    provider: str
    is_active: bool
    description: str | None
    fiat_exchange: dict[str, Any]


@router.get("")
async def get_rate(
    currency_code: str = Query(min_length=3, max_length=3),
    type: RateType = Query(default=RateType.buy),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    client: ExchangeProviderClient = Depends(exchange_client),
) -> dict[str, Any]:
    quote = await RateService(session=session, settings=settings, client=client).get_rate(
        currency_code=currency_code, rate_type=type
    )
    r = quote.rate
    return {
        "id": str(r.id),
        "provider": r.provider,
        "buying_currency_code": r.buying_currency_code,
        "selling_currency_code": r.selling_currency_code,
        "rate": r.rate,
        "rate_scale": RATE_SCALE,
        "created_at": r.created_at.isoformat(),
        **quote.fees,
    }


@router.put("/config", response_model=RateConfigResponse)
async def upsert_rate_config(
    body: RateConfigDto,
    _: Principal = Depends(require_permissions("rates:manage")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> RateConfigResponse:
    fees = body.model_dump(
        include={"service_fee", "partner_fee", "disbursement_fee", "ngn_withdrawal_fee"},
        exclude_none=True,
    )
    row = await RateService(session=session, settings=settings).upsert_config(
        provider=body.provider,
        is_active=body.is_active,
        description=body.description,
        fiat_exchange=fees,
    )
    return RateConfigResponse(
        id=row.id,
        provider=row.provider,
        is_active=row.is_active,
        description=row.description,
        fiat_exchange=row.fiat_exchange,
    )
