"""
onedosh_api.api.routers.kyc

KYC and tier endpoints.

Responsibilities:
- Start/restart verification and read the latest status for the caller.
- Reviewer decisions and tier configuration (`kyc:review`).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.auth.deps import get_current_user, require_permissions
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import KycStatus, KycVerification, TierConfig, User
from onedosh_api.services.kyc import KycService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/kyc", tags=["kyc"])


class InitiateKycDto(BaseModel):
    level: int = Field(ge=1, le=10)
    country_code: str | None = Field(default=None, min_length=2, max_length=2)


class ReviewKycDto(BaseModel):
    decision: KycStatus
    reason: str | None = Field(default=None, max_length=500)


class CreateTierDto(BaseModel):
    country_code: str = Field(min_length=2, max_length=2)
    level: int = Field(ge=1, le=10)
    name: str = Field(min_length=1, max_length=128)
    description: str | None = None
    is_active: bool = True
    maximum_single_transaction: int = Field(default=0, ge=0)
    maximum_daily_transaction: int = Field(default=0, ge=0)
    verification_requirements: list[str] = Field(default_factory=list)


class KycResponse(BaseModel):
    id: uuid.UUID | None
    status: str
    level: int | None = None
    provider: str | None = None
    provider_ref: str | None = None
    attempt: int = 0
    error_message: str | None = None
    reviewed_at: datetime | None = None


class TierResponse(BaseModel):
    id: uuid.UUID
    country_code: str
    level: int
    name: str
    description: str | None
    is_active: bool
    maximum_single_transaction: int
    maximum_daily_transaction: int
    verification_requirements: list[str]


def _kyc_out(row: KycVerification | None) -> KycResponse:
    if row is None:
        return KycResponse(id=None, status=KycStatus.not_started.value)
    return KycResponse(
        id=row.id,
        status=row.status.value,
        level=row.tier_config.level if row.tier_config is not None else None,
        provider=row.provider,
        provider_ref=row.provider_ref,
        attempt=row.attempt,
        error_message=row.error_message,
        reviewed_at=row.reviewed_at,
    )


def _tier_out(t: TierConfig) -> TierResponse:
    return TierResponse(
        id=t.id,
        country_code=t.country_code,
        level=t.level,
        name=t.name,
        description=t.description,
        is_active=t.is_active,
        maximum_single_transaction=t.maximum_single_transaction,
        maximum_daily_transaction=t.maximum_daily_transaction,
        verification_requirements=list(t.verification_requirements or []),
    )


@router.post("", response_model=KycResponse)
async def initiate_kyc(
    body: InitiateKycDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> KycResponse:
    svc = KycService(session=session, settings=settings)
    row = await svc.initiate(user=user, level=body.level, country_code=body.country_code)
    await session.refresh(row, ["tier_config"])
    return _kyc_out(row)


@router.post("/restart", response_model=KycResponse)
async def restart_kyc(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> KycResponse:
    row = await KycService(session=session, settings=settings).restart(user=user)
    return _kyc_out(row)


@router.get("/status", response_model=KycResponse)
async def kyc_status(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> KycResponse:
    return _kyc_out(await KycService(session=session, settings=settings).latest(user=user))


@router.post("/{kyc_id}/review", response_model=KycResponse)
async def review_kyc(
    kyc_id: uuid.UUID,
    body: ReviewKycDto,
    principal: Principal = Depends(require_permissions("kyc:review")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> KycResponse:
    row = await KycService(session=session, settings=settings).review(
        kyc_id=kyc_id, decision=body.decision, reviewer=principal.subject, reason=body.reason
    )
    return _kyc_out(row)


@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers(
    country_code: str | None = Query(default=None, min_length=2, max_length=2),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> list[TierResponse]:
    tiers = await KycService(session=session, settings=settings).list_tiers(country_code=country_code)
    return [_tier_out(t) for t in tiers]


@router.post("/tiers", response_model=TierResponse, status_code=HTTP_201_CREATED)
async def create_tier(
    body: CreateTierDto,
    _: Principal = Depends(require_permissions("kyc:review")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> TierResponse:
    tier = await KycService(session=session, settings=settings).create_tier(**body.model_dump())
    return _tier_out(tier)
