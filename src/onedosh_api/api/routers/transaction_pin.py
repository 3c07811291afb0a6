"""
onedosh_api.api.routers.transaction_pin

Transaction PIN endpoints (set, change, reset with a verification token).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.auth.deps import get_current_user
from onedosh_api.db.models import User
from onedosh_api.services.transaction_pin import TransactionPinService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/transaction-pin", tags=["transaction-pin"])

PIN_PATTERN = r"^\d{6}$"


class _ConfirmedPin(BaseModel):
    @model_validator(mode="after")
    def _pins_match(self):
        if self.pin != self.confirm_pin:  # type: ignore[attr-defined]
            raise ValueError("PIN confirmation does not match")
        return self


class SetPinDto(_ConfirmedPin):
    pin: str = Field(pattern=PIN_PATTERN)
    confirm_pin: str = Field(pattern=PIN_PATTERN)


class ChangePinDto(_ConfirmedPin):
    old_pin: str = Field(pattern=PIN_PATTERN)
    pin: str = Field(pattern=PIN_PATTERN)
    confirm_pin: str = Field(pattern=PIN_PATTERN)


class ResetPinDto(_ConfirmedPin):
    verification_token: str = Field(min_length=1)
    pin: str = Field(pattern=PIN_PATTERN)
    confirm_pin: str = Field(pattern=PIN_PATTERN)


class PinMessage(BaseModel):
    message: str


@router.post("", response_model=PinMessage)
async def set_pin(
    body: SetPinDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> PinMessage:
    await TransactionPinService(session=session, settings=settings).set_pin(user=user, pin=body.pin)
    return PinMessage(message="Transaction PIN set")


@router.patch("", response_model=PinMessage)
async def change_pin(
    body: ChangePinDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> PinMessage:
    await TransactionPinService(session=session, settings=settings).change_pin(
        user=user, old_pin=body.old_pin, new_pin=body.pin
    )
    return PinMessage(message="Transaction PIN changed")


@router.post("/reset", response_model=PinMessage)
async def reset_pin(
    body: ResetPinDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> PinMessage:
    await TransactionPinService(session=session, settings=settings).reset_pin(
        user=user, token=body.verification_token, pin=body.pin
    )
    return PinMessage(message="Transaction PIN reset")
