"""
onedosh_api.api.routers.users

Account endpoints for the signed-in user plus admin user management.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, StrictStr
from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.auth.deps import get_current_user, require_permissions
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import User, VerificationType
from onedosh_api.services.auth import AuthService
from onedosh_api.services.transaction_pin import TransactionPinService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/users", tags=["users"])


class VerifyPasswordDto(BaseModel):
    password: StrictStr = Field(min_length=1)
    verification_type: VerificationType = VerificationType.transaction_pin_reset


class VerifyPasswordResponse(BaseModel):
    verification_token: str
    verification_type: VerificationType
    expires_at: datetime


class UpdateProfileDto(BaseModel):
    dob: date | None = None
    gender: str | None = Field(default=None, max_length=16)
    address_line1: str | None = Field(default=None, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=128)
    state_or_province: str | None = Field(default=None, max_length=128)
    postal_code: str | None = Field(default=None, max_length=32)
    avatar_url: str | None = None
    notification_token: str | None = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    username: str
    first_name: str
    middle_name: str | None
    last_name: str
    phone_number: str | None
    country_code: str | None
    status: str
    is_email_verified: bool
    is_deactivated: bool
    require_transaction_pin_reset: bool
    has_transaction_pin: bool | None = None
    roles: list[str]
    profile: dict[str, Any]


class UserPage(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    limit: int


def _user_out(user: User, *, has_pin: bool | None = None) -> UserResponse:
    p = user.profile
    profile: dict[str, Any] = {}
    if p is not None:
        profile = {
            "dob": p.dob.isoformat() if p.dob else None,
            "gender": p.gender,
            "address_line1": p.address_line1,
            "address_line2": p.address_line2,
            "city": p.city,
            "state_or_province": p.state_or_province,
            "postal_code": p.postal_code,
            "avatar_url": p.avatar_url,
        }
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        middle_name=user.middle_name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        country_code=user.country_code,
        status=user.status.value,
        is_email_verified=user.is_email_verified,
        is_deactivated=user.is_deactivated,
        require_transaction_pin_reset=user.require_transaction_pin_reset,
        has_transaction_pin=has_pin,
        roles=user.role_slugs,
        profile=profile,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserResponse:
    has_pin = await TransactionPinService(session=session, settings=settings).has_pin(user)
    return _user_out(user, has_pin=has_pin)


@router.patch("/me/profile", response_model=UserResponse)
async def update_profile(
    body: UpdateProfileDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserResponse:
    updated = await AuthService(session=session, settings=settings).update_profile(
        user=user, fields=body.model_dump(exclude_unset=True)
    )
    return _user_out(updated)


@router.post("/me/verify-password", response_model=VerifyPasswordResponse)
async def verify_password(
    body: VerifyPasswordDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> VerifyPasswordResponse:
    issued = await AuthService(session=session, settings=settings).verify_password(
        user=user, password=body.password, verification_type=body.verification_type
    )
    return VerifyPasswordResponse(
        verification_token=issued.token,
        verification_type=issued.verification_type,
        expires_at=issued.expires_at,
    )


@router.get("", response_model=UserPage)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    _: Principal = Depends(require_permissions("users:manage")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserPage:
    users, total = await AuthService(session=session, settings=settings).list_users(page=page, limit=limit)
    return UserPage(items=[_user_out(u) for u in users], total=total, page=page, limit=limit)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(require_permissions("users:manage")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserResponse:
    user = await AuthService(session=session, settings=settings).set_deactivated(
        user_id=user_id, deactivated=True, actor=principal.subject
    )
    return _user_out(user)


@router.post("/{user_id}/reactivate", response_model=UserResponse)
async def reactivate_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(require_permissions("users:manage")),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserResponse:
    user = await AuthService(session=session, settings=settings).set_deactivated(
        user_id=user_id, deactivated=False, actor=principal.subject
    )
    return _user_out(user)
