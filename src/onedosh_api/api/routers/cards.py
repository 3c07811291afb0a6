"""
onedosh_api.api.routers.cards

Card endpoints.

Responsibilities:
- Card account onboarding and virtual card issuing.
- Freeze/unfreeze/cancel for the owner; block/unblock for operators (`cards:manage`).
- PIN-guarded card funding from the USD wallet.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from onedosh_api.api.deps import card_client, db_session, settings_dep
from onedosh_api.auth.deps import get_current_user, require_permissions, require_transaction_pin
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import Card, CardTransaction, User
from onedosh_api.providers.cards import CardProviderClient
from onedosh_api.services.cards import CardService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/cards", tags=["cards"])


class CreateCardDto(BaseModel):
    spending_limit: int | None = Field(default=None, gt=0)


class FundCardDto(BaseModel):
    amount: int = Field(gt=0, description="USD amount in cents")


class CardUserResponse(BaseModel):
    id: uuid.UUID
    status: str
    provider_ref: str | None


class CardResponse(BaseModel):
    id: uuid.UUID
    last_four_digits: str | None
    card_type: str
    status: str
    is_freezed: bool
    balance: int
    spending_limit: int | None
    created_at: datetime


class CardTransactionResponse(BaseModel):
    id: uuid.UUID
    amount: int
    fee: int
    currency: str
    transaction_type: str
    status: str
    description: str | None
    merchant_name: str | None
    created_at: datetime


def _card_out(c: Card) -> CardResponse:
    return CardResponse(
        id=c.id,
        last_four_digits=c.last_four_digits,
        card_type=c.card_type.value,
        status=c.status.value,
        is_freezed=c.is_freezed,
        balance=c.balance,
        spending_limit=c.spending_limit,
        created_at=c.created_at,
    )


def _card_tx_out(t: CardTransaction) -> CardTransactionResponse:
    return CardTransactionResponse(
        id=t.id,
        amount=t.amount,
        fee=t.fee,
        currency=t.currency,
        transaction_type=t.transaction_type.value,
        status=t.status.value,
        description=t.description,
        merchant_name=t.merchant_name,
        created_at=t.created_at,
    )


def card_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    client: CardProviderClient = Depends(card_client),
) -> CardService:
    return CardService(session=session, settings=settings, client=client)


@router.post("/users", response_model=CardUserResponse, status_code=HTTP_201_CREATED)
async def create_card_user(
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardUserResponse:
    row = await svc.create_card_user(user=user)
    return CardUserResponse(id=row.id, status=row.status.value, provider_ref=row.provider_ref)


@router.post("", response_model=CardResponse, status_code=HTTP_201_CREATED)
async def create_card(
    body: CreateCardDto,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.create_card(user=user, spending_limit=body.spending_limit))


@router.get("", response_model=list[CardResponse])
async def list_cards(
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> list[CardResponse]:
    return [_card_out(c) for c in await svc.list_cards(user=user)]


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.get_card(user=user, card_id=card_id))


@router.post("/{card_id}/freeze", response_model=CardResponse)
async def freeze_card(
    card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.set_frozen(user=user, card_id=card_id, freeze=True))


@router.post("/{card_id}/unfreeze", response_model=CardResponse)
async def unfreeze_card(
    card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.set_frozen(user=user, card_id=card_id, freeze=False))


@router.post("/{card_id}/cancel", response_model=CardResponse)
async def cancel_card(
    card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.cancel(user=user, card_id=card_id))


@router.post("/{card_id}/fund", response_model=CardTransactionResponse)
async def fund_card(
    card_id: uuid.UUID,
    body: FundCardDto,
    user: User = Depends(require_transaction_pin),
    svc: CardService = Depends(card_service),
) -> CardTransactionResponse:
    return _card_tx_out(await svc.fund(user=user, card_id=card_id, amount=body.amount))


@router.get("/{card_id}/transactions", response_model=list[CardTransactionResponse])
async def list_card_transactions(
    card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    svc: CardService = Depends(card_service),
) -> list[CardTransactionResponse]:
    return [_card_tx_out(t) for t in await svc.list_transactions(user=user, card_id=card_id)]


@router.post("/{card_id}/block", response_model=CardResponse)
async def block_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(require_permissions("cards:manage")),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.set_blocked(card_id=card_id, block=True, actor=principal.subject))


@router.post("/{card_id}/unblock", response_model=CardResponse)
async def unblock_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(require_permissions("cards:manage")),
    svc: CardService = Depends(card_service),
) -> CardResponse:
    return _card_out(await svc.set_blocked(card_id=card_id, block=False, actor=principal.subject))
