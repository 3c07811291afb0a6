"""
onedosh_api.api.routers.wallets

Fiat wallet endpoints.

Responsibilities:
- List wallets and per-currency transaction history for the caller.
- PIN-guarded transfers between users.
- Admin credits (`wallets:fund`).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.auth.deps import get_current_user, require_permissions, require_transaction_pin
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import FiatWallet, FiatWalletTransaction, User
from onedosh_api.services.wallets import WalletService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/wallets", tags=["wallets"])


class WalletResponse(BaseModel):
    id: uuid.UUID
    asset: str
    balance: int
    status: str


class WalletTransactionResponse(BaseModel):
    id: uuid.UUID
    transaction_id: uuid.UUID
    transaction_type: str
    amount: int
    balance_before: int
    balance_after: int
    currency: str
    status: str
    description: str | None
    source: str | None
    destination: str | None
    created_at: datetime


class WalletTransactionPage(BaseModel):
    items: list[WalletTransactionResponse]
    total: int
    page: int
    limit: int


class TransferDto(BaseModel):
    recipient: str = Field(min_length=1, max_length=320, description="Recipient username or email")
    asset: str = Field(min_length=3, max_length=8)
    amount: int = Field(gt=0, description="Amount in the currency's smallest unit")
    description: str | None = Field(default=None, max_length=255)


class TransferResponse(BaseModel):
    reference: str
    debit: WalletTransactionResponse


class AdminCreditDto(BaseModel):
    user_id: uuid.UUID
    asset: str = Field(min_length=3, max_length=8)
    amount: int = Field(gt=0)
    description: str | None = Field(default=None, max_length=255)
    idempotency_key: str | None = Field(default=None, max_length=128)


def _wallet_out(w: FiatWallet) -> WalletResponse:
    return WalletResponse(id=w.id, asset=w.asset, balance=w.balance, status=w.status.value)


def _tx_out(t: FiatWalletTransaction) -> WalletTransactionResponse:
    return WalletTransactionResponse(
        id=t.id,
        transaction_id=t.transaction_id,
        transaction_type=t.transaction_type.value,
        amount=t.amount,
        balance_before=t.balance_before,
        balance_after=t.balance_after,
        currency=t.currency,
        status=t.status.value,
        description=t.description,
        source=t.source,
        destination=t.destination,
        created_at=t.created_at,
    )


@router.get("", response_model=list[WalletResponse])
async def list_wallets(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> list[WalletResponse]:
    wallets = await WalletService(session=session, settings=settings).list_wallets(user.id)
    return [_wallet_out(w) for w in wallets]


@router.get("/{asset}/transactions", response_model=WalletTransactionPage)
async def wallet_history(
    asset: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> WalletTransactionPage:
    rows, total = await WalletService(session=session, settings=settings).history(
        user_id=user.id, asset=asset, page=page, limit=limit
    )
    return WalletTransactionPage(items=[_tx_out(r) for r in rows], total=total, page=page, limit=limit)


@router.post("/transfer", response_model=TransferResponse)
async def transfer(
    body: TransferDto,
    user: User = Depends(require_transaction_pin),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> TransferResponse:
    result = await WalletService(session=session, settings=settings).transfer(
        sender=user,
        recipient=body.recipient,
        asset=body.asset,
        amount=body.amount,
        description=body.description,
    )
    return TransferResponse(reference=result.reference, debit=_tx_out(result.debit))


@router.post("/admin/credit", response_model=WalletTransactionResponse)
async def admin_credit(
    body: AdminCreditDto,
    _: Principal = Depends(require_permissions("wallets:fund")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> WalletTransactionResponse:
    row = await WalletService(session=session, settings=settings).admin_credit(
        user_id=body.user_id,
        asset=body.asset,
        amount=body.amount,
        description=body.description,
        idempotency_key=body.idempotency_key,
    )
    return _tx_out(row)
