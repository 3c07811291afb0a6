"""
onedosh_api.services.transaction_pin

Transaction PIN lifecycle and verification.

Responsibilities:
- Set, change and reset (via verification token) a user's transaction PIN.
- Verify a PIN for money-moving requests with progressive lockout.
- Flag the account for a mandatory reset after too many failures.
"""

from __future__ import annotations

import math
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from onedosh_api.auth.passwords import hash_password, hash_verification_token, verify_password
from onedosh_api.db.base import utcnow
from onedosh_api.db.models import TransactionPin, User, VerificationType
from onedosh_api.db.repositories.users import TransactionPinRepo, VerificationTokenRepo
from onedosh_api.errors import (
    BadRequestError,
    ConflictError,
    RestrictionError,
    RestrictionErrorType,
)
from onedosh_api.observability.logging import get_logger
from onedosh_api.settings import Settings

log = get_logger(__name__)

# (failed attempts, lockout minutes); first match wins.
LOCKOUT_STEPS: tuple[tuple[int, int], ...] = ((7, 60), (5, 30), (3, 15))


def lockout_for(failed_attempts: int) -> timedelta | None:
    for threshold, minutes in LOCKOUT_STEPS:
        if failed_attempts >= threshold:
            return timedelta(minutes=minutes)
    return None


class TransactionPinService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._pins = TransactionPinRepo(session)
        self._tokens = VerificationTokenRepo(session)

    async def has_pin(self, user: User) -> bool:
        row = await self._pins.get_for_user(user.id)
        return bool(row and row.pin)

    async def set_pin(self, *, user: User, pin: str) -> None:
        row = await self._pins.get_for_user(user.id)
        if row is not None and row.pin:
            raise ConflictError("Transaction PIN already set")
        await self._pins.upsert(user_id=user.id, pin_hash=hash_password(pin))
        await self._session.commit()
        log.info("transaction_pin_set", user_id=str(user.id))

    async def change_pin(self, *, user: User, old_pin: str, new_pin: str) -> None:
        row = await self._pins.get_for_user(user.id, for_update=True)
        if row is None or not row.pin:
            raise BadRequestError("Transaction PIN not set")
        if not verify_password(old_pin, row.pin):
            raise BadRequestError("Old transaction PIN is incorrect")
        if old_pin == new_pin:
            raise BadRequestError("New transaction PIN must be different from the old one")
        await self._pins.upsert(user_id=user.id, pin_hash=hash_password(new_pin))
        await self._session.commit()
        log.info("transaction_pin_changed", user_id=str(user.id))

    async def reset_pin(self, *, user: User, token: str, pin: str) -> None:
        row = await self._tokens.get_by_hash(hash_verification_token(token))
        if (
            row is None
            or row.user_id != user.id
            or row.is_used
            or row.verification_type != VerificationType.transaction_pin_reset
        ):
            raise BadRequestError("Invalid verification token")
        if row.expires_at < utcnow():
            raise BadRequestError("Verification token has expired")

        row.is_used = True
        user.require_transaction_pin_reset = False
        await self._pins.upsert(user_id=user.id, pin_hash=hash_password(pin))
        await self._session.commit()
        log.info("transaction_pin_reset", user_id=str(user.id))

    async def verify_or_raise(self, *, user: User, pin: str | None) -> None:
        if user.require_transaction_pin_reset:
            raise RestrictionError(
                RestrictionErrorType.pin_locked,
                "Transaction PIN is locked. Reset your transaction PIN to continue.",
            )
        if not pin:
            raise BadRequestError("Transaction PIN is required")

        row = await self._pins.get_for_user(user.id, for_update=True)
        if row is None or not row.pin:
            raise BadRequestError("Transaction PIN not set")

        now = utcnow()
        if row.locked_until is not None and row.locked_until > now:
            minutes = max(1, math.ceil((row.locked_until - now).total_seconds() / 60))
            raise RestrictionError(
                RestrictionErrorType.pin_rate_limited,
                f"Too many failed attempts. Try again in {minutes} minute(s).",
                data={"locked_until": row.locked_until.isoformat()},
            )

        if verify_password(pin, row.pin):
            if row.failed_attempts or row.locked_until is not None:
                row.failed_attempts = 0
                row.locked_until = None
                await self._session.commit()
            return

        await self._record_failure(user=user, row=row)

    async def _record_failure(self, *, user: User, row: TransactionPin) -> None:
        max_attempts = self._settings.transaction_pin_max_attempts
        row.failed_attempts += 1
        attempts = row.failed_attempts

        if attempts >= max_attempts:
            user.require_transaction_pin_reset = True
            await self._session.commit()
            log.warning("transaction_pin_locked", user_id=str(user.id), failed_attempts=attempts)
            raise RestrictionError(
                RestrictionErrorType.pin_locked,
                "Too many failed attempts. Reset your transaction PIN to continue.",
            )

        lock = lockout_for(attempts)
        if lock is not None:
            row.locked_until = utcnow() + lock
        await self._session.commit()
        log.info("transaction_pin_failed", user_id=str(user.id), failed_attempts=attempts)
        raise BadRequestError(f"Invalid transaction PIN. {max_attempts - attempts} attempt(s) left.")


# --- Module Notes -----------------------------------------------------------
# Failure counters are committed before raising so the request's rollback cannot undo them.
