"""
onedosh_api.api.routers.dosh_points

Dosh points endpoints: balance, earning history, events and admin credits.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.api.deps import db_session
from onedosh_api.auth.deps import get_current_user, require_permissions
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import DoshPointsTransaction, User
from onedosh_api.services.dosh_points import DoshPointsService

router = APIRouter(prefix="/v1/dosh-points", tags=["dosh-points"])


class AccountResponse(BaseModel):
    id: uuid.UUID
    balance: int
    status: str


class PointsTransactionResponse(BaseModel):
    id: uuid.UUID
    event_code: str
    transaction_type: str
    amount: int
    balance_before: int
    balance_after: int
    source_reference: str
    description: str | None
    status: str
    created_at: datetime


class HistoryResponse(BaseModel):
    items: list[PointsTransactionResponse]
    total: int
    page: int
    limit: int


class EventResponse(BaseModel):
    code: str
    name: str
    description: str | None
    default_points: int
    is_active: bool
    is_one_time_per_user: bool


class AdminCreditDto(BaseModel):
    user_id: uuid.UUID
    event_code: str = Field(min_length=1, max_length=64)
    source_reference: str = Field(min_length=1, max_length=128)
    amount: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=255)


class CreditResponse(BaseModel):
    transaction: PointsTransactionResponse
    is_duplicate: bool


def _tx_out(t: DoshPointsTransaction) -> PointsTransactionResponse:
    return PointsTransactionResponse(
        id=t.id,
        event_code=t.event_code,
        transaction_type=t.transaction_type.value,
        amount=t.amount,
        balance_before=t.balance_before,
        balance_after=t.balance_after,
        source_reference=t.source_reference,
        description=t.description,
        status=t.status.value,
        created_at=t.created_at,
    )


@router.get("/account", response_model=AccountResponse)
async def get_account(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> AccountResponse:
    account = await DoshPointsService(session=session).get_account(user.id)
    return AccountResponse(id=account.id, balance=account.balance, status=account.status.value)


@router.get("/history", response_model=HistoryResponse)
async def history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> HistoryResponse:
    rows, total = await DoshPointsService(session=session).history(user.id, page=page, limit=limit)
    return HistoryResponse(items=[_tx_out(r) for r in rows], total=total, page=page, limit=limit)


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> list[EventResponse]:
    events = await DoshPointsService(session=session).list_events()
    return [
        EventResponse(
            code=e.code,
            name=e.name,
            description=e.description,
            default_points=e.default_points,
            is_active=e.is_active,
            is_one_time_per_user=e.is_one_time_per_user,
        )
        for e in events
    ]


@router.post("/admin/credit", response_model=CreditResponse)
async def admin_credit(
    body: AdminCreditDto,
    principal: Principal = Depends(require_permissions("points:manage")),
    session: AsyncSession = Depends(db_session),
) -> CreditResponse:
    result = await DoshPointsService(session=session).credit_points(
        user_id=body.user_id,
        event_code=body.event_code,
        source_reference=body.source_reference,
        amount=body.amount,
        description=body.description,
        details={"credited_by": principal.subject},
    )
    return CreditResponse(transaction=_tx_out(result.transaction), is_duplicate=result.is_duplicate)
