"""
onedosh_api.api.routers.auth

Public authentication endpoints.

Responsibilities:
- Register a new account.
- Exchange credentials for an access token.
"""

from __future__ import annotations

import re
import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.services.auth import AuthService
from onedosh_api.settings import Settings

router = APIRouter(prefix="/v1/auth", tags=["auth"])

_USERNAME_RE = re.compile(r"^[a-z0-9_.]+$")


def _lower_strip(v: object) -> object:
    return v.strip().lower() if isinstance(v, str) else v


class RegisterDto(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=32)
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=128)
    last_name: str = Field(min_length=1, max_length=128)
    middle_name: str | None = Field(default=None, max_length=128)
    phone_number: str | None = Field(default=None, pattern=r"^\+?[0-9]{7,15}$")
    phone_number_country_code: str | None = Field(default=None, max_length=8)
    country_code: str | None = Field(default=None, min_length=2, max_length=2)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return _lower_strip(v)

    @field_validator("username", mode="before")
    @classmethod
    def _normalize_username(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def _username_chars(cls, v: str) -> str:
        if " " in v:
            raise ValueError("username must not contain spaces")
        if not _USERNAME_RE.match(v):
            raise ValueError("username may only contain letters, digits, '_' and '.'")
        return v

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        if not re.search(r"[A-Za-z]", v) or not re.search(r"\d", v):
            raise ValueError("password must contain at least one letter and one digit")
        return v

    @field_validator("first_name", "last_name", "middle_name")
    @classmethod
    def _strip_names(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("country_code")
    @classmethod
    def _upper_country(cls, v: str | None) -> str | None:
        return v.upper() if v is not None else v


class LoginDto(BaseModel):
    identifier: str = Field(min_length=1, max_length=320, description="Email or username")
    password: str = Field(min_length=1, max_length=128)

    @field_validator("identifier", mode="before")
    @classmethod
    def _normalize_identifier(cls, v: object) -> object:
        return _lower_strip(v)


class RegisterResponse(BaseModel):
    id: uuid.UUID
    email: str
    username: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: uuid.UUID
    roles: list[str]


@router.post("/register", response_model=RegisterResponse, status_code=HTTP_201_CREATED)
async def register(
    body: RegisterDto,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> RegisterResponse:
    user = await AuthService(session=session, settings=settings).register(**body.model_dump())
    return RegisterResponse(id=user.id, email=user.email, username=user.username)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginDto,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> TokenResponse:
    issued = await AuthService(session=session, settings=settings).login(
        identifier=body.identifier, password=body.password
    )
    return TokenResponse(
        access_token=issued.access_token,
        expires_in=issued.expires_in,
        user_id=issued.user.id,
        roles=issued.user.role_slugs,
    )
