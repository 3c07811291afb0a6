"""
onedosh_api.services.auth

Account lifecycle service.

Responsibilities:
- Register users (unique checks, default role, profile, wallets, sign-up bonus).
- Authenticate credentials and issue access tokens.
- Re-verify a password before sensitive operations and issue verification tokens.
- Profile updates and admin activation toggles.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.auth.jwt import JwtConfig, issue_token
from onedosh_api.auth.passwords import hash_password, new_verification_token, verify_password
from onedosh_api.db.base import utcnow
from onedosh_api.db.models import User, UserProfile, UserStatus, VerificationType
from onedosh_api.db.repositories.users import UserRepo, VerificationTokenRepo
from onedosh_api.db.seeds import SUPER_ADMIN, USER
from onedosh_api.db.validators import ensure_unique
from onedosh_api.errors import (
    DoshPointsError,
    ForbiddenError,
    NotFoundError,
    RestrictionError,
    RestrictionErrorType,
    UnauthorizedError,
)
from onedosh_api.observability.logging import get_logger
from onedosh_api.services.dosh_points import DoshPointsService
from onedosh_api.services.wallets import WalletService
from onedosh_api.settings import Settings

log = get_logger(__name__)

REGISTRATION_BONUS = "REGISTRATION_BONUS"


@dataclass(frozen=True, slots=True)
class IssuedToken:
    access_token: str
    expires_in: int
    user: User


@dataclass(frozen=True, slots=True)
class IssuedVerification:
    token: str
    verification_type: VerificationType
    expires_at: datetime


class AuthService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._users = UserRepo(session)

    async def register(
        self,
        *,
        email: str,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        middle_name: str | None = None,
        phone_number: str | None = None,
        phone_number_country_code: str | None = None,
        country_code: str | None = None,
    ) -> User:
        await ensure_unique(self._session, User.email, email)
        await ensure_unique(self._session, User.username, username)
        await ensure_unique(self._session, User.phone_number, phone_number, field="phone_number")

        try:
            user = await self._users.create(
                roles=await self._users.roles_by_slugs([USER]),
                email=email,
                username=username,
                password=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                middle_name=middle_name,
                phone_number=phone_number,
                phone_number_country_code=phone_number_country_code,
                country_code=country_code,
                status=UserStatus.active,
            )
            await WalletService(session=self._session, settings=self._settings).ensure_wallets(user.id)

            try:
                await DoshPointsService(session=self._session).apply_credit(
                    user_id=user.id,
                    event_code=REGISTRATION_BONUS,
                    source_reference=str(user.id),
                )
            except DoshPointsError as e:
                # Sign-up still succeeds when the bonus campaign is off.
                log.warning("registration_bonus_skipped", user_id=str(user.id), reason=e.type)

            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        log.info("user_registered", user_id=str(user.id))
        return user

    async def login(self, *, identifier: str, password: str) -> IssuedToken:
        user = await self._users.get_by_login(identifier)
        if user is None or not verify_password(password, user.password):
            raise UnauthorizedError("Invalid credentials")
        if user.is_deactivated:
            raise RestrictionError(
                RestrictionErrorType.account_deactivated,
                "This account has been deactivated",
            )

        ttl = timedelta(minutes=self._settings.access_token_ttl_minutes)
        token = issue_token(
            cfg=JwtConfig.from_settings(self._settings),
            subject=str(user.id),
            roles=user.role_slugs,
            permissions=user.permission_slugs,
            ttl=ttl,
        )
        log.info("user_logged_in", user_id=str(user.id))
        return IssuedToken(access_token=token, expires_in=int(ttl.total_seconds()), user=user)

    async def verify_password(
        self,
        *,
        user: User,
        password: str,
        verification_type: VerificationType = VerificationType.transaction_pin_reset,
    ) -> IssuedVerification:
        if not verify_password(password, user.password):
            raise UnauthorizedError("Incorrect password")

        token, digest = new_verification_token()
        expires_at = utcnow() + timedelta(minutes=self._settings.verification_token_ttl_minutes)
        await VerificationTokenRepo(self._session).create(
            user_id=user.id,
            token_hash=digest,
            verification_type=verification_type,
            expires_at=expires_at,
        )
        await self._session.commit()
        log.info("password_verified", user_id=str(user.id), verification_type=verification_type.value)
        return IssuedVerification(token=token, verification_type=verification_type, expires_at=expires_at)

    async def update_profile(self, *, user: User, fields: dict[str, Any]) -> User:
        if user.profile is None:
            user.profile = UserProfile()
        for key, value in fields.items():
            setattr(user.profile, key, value)
        await self._session.commit()
        return user

    async def list_users(self, *, page: int = 1, limit: int = 50) -> tuple[list[User], int]:
        page = max(page, 1)
        limit = max(1, min(limit, 100))
        return await self._users.list(offset=(page - 1) * limit, limit=limit)

    async def set_deactivated(self, *, user_id: uuid.UUID, deactivated: bool, actor: str) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if deactivated and SUPER_ADMIN in user.role_slugs:
            raise ForbiddenError("Super admin accounts cannot be deactivated")
        user.is_deactivated = deactivated
        user.status = UserStatus.inactive if deactivated else UserStatus.active
        await self._session.commit()
        log.info(
            "user_deactivated" if deactivated else "user_reactivated",
            user_id=str(user.id),
            actor=actor,
        )
        return user
