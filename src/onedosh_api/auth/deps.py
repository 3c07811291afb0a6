"""
onedosh_api.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Enforce RBAC via reusable dependency factories (roles and permissions).
- Resolve the current `User` row and guard money-moving routes with the transaction PIN.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from onedosh_api.api.deps import db_session
from onedosh_api.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from onedosh_api.auth.models import Principal
from onedosh_api.db.models import User
from onedosh_api.db.repositories.users import UserRepo
from onedosh_api.errors import RestrictionError, RestrictionErrorType
from onedosh_api.services.transaction_pin import TransactionPinService
from onedosh_api.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    subject = str(payload.get("sub", ""))
    roles_raw = payload.get("roles", [])
    perms_raw = payload.get("permissions", [])
    if not subject:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    if not isinstance(roles_raw, list) or not isinstance(perms_raw, list):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token roles")

    return Principal(
        subject=subject,
        roles=frozenset(str(r) for r in roles_raw),
        permissions=frozenset(str(p) for p in perms_raw),
    )


async def get_current_user(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> User:
    try:
        user_id = uuid.UUID(principal.subject)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from e

    user = await UserRepo(session).get(user_id)
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="User not found")
    if user.is_deactivated:
        raise RestrictionError(
            RestrictionErrorType.account_deactivated,
            "This account has been deactivated",
        )

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    """
    Principal built from the stored user row, so revoked roles and deactivation
    apply to tokens that are already issued.
    """

    return Principal(
        subject=str(user.id),
        roles=frozenset(user.role_slugs),
        permissions=frozenset(user.permission_slugs),
    )


def require_roles(*required: str):
    required_set = frozenset(required)

    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_super_admin:
            return principal
        if not required_set.issubset(principal.roles):
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _dep


def require_permissions(*required: str):
    required_set = frozenset(required)

    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_super_admin:
            return principal
        if not required_set.issubset(principal.permissions):
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient permission")
        return principal

    return _dep


async def require_transaction_pin(
    x_transaction_pin: str | None = Header(default=None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Guard for money-moving routes: the caller must send `X-Transaction-Pin`.
    """

    await TransactionPinService(session=session, settings=settings).verify_or_raise(
        user=user, pin=x_transaction_pin
    )
    return user


# --- Module Notes -----------------------------------------------------------
# `require_roles` / `require_permissions` are set-membership checks against the roles
# and permissions loaded with the user row; the token's own claims are informational.
