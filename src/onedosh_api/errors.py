"""
onedosh_api.errors

Domain error taxonomy.

Responsibilities:
- Give services a small set of exceptions that carry an HTTP status and a stable `type`.
- Keep HTTP rendering out of the service layer (see `api.errors`).
"""

from __future__ import annotations

import enum
from typing import Any

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_423_LOCKED,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_502_BAD_GATEWAY,
)


class AppError(Exception):
    status_code: int = HTTP_400_BAD_REQUEST
    type: str = "AppError"

    def __init__(self, message: str, *, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}


class BadRequestError(AppError):
    type = "BadRequest"


class NotFoundError(AppError):
    status_code = HTTP_404_NOT_FOUND
    type = "NotFoundException"


class ConflictError(AppError):
    status_code = HTTP_409_CONFLICT
    type = "ConflictException"


class UnauthorizedError(AppError):
    status_code = HTTP_401_UNAUTHORIZED
    type = "Unauthorized"


class ForbiddenError(AppError):
    status_code = HTTP_403_FORBIDDEN
    type = "Forbidden"


class InsufficientBalanceError(AppError):
    type = "InsufficientBalance"

    def __init__(self, message: str = "Insufficient balance for this transaction") -> None:
        super().__init__(message)


class ProviderError(AppError):
    status_code = HTTP_502_BAD_GATEWAY
    type = "ProviderError"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}", data={"provider": provider})
        self.provider = provider


class DoshPointsErrorType(enum.StrEnum):
    event_not_found = "EVENT_NOT_FOUND"
    event_inactive = "EVENT_INACTIVE"
    already_earned = "ALREADY_EARNED"


_DOSH_POINTS_MESSAGES = {
    DoshPointsErrorType.event_not_found: "Dosh points event {code} was not found",
    DoshPointsErrorType.event_inactive: "Dosh points event {code} is not active",
    DoshPointsErrorType.already_earned: "Dosh points for {code} have already been earned",
}


class DoshPointsError(AppError):
    def __init__(self, error_type: DoshPointsErrorType, event_code: str) -> None:
        super().__init__(
            _DOSH_POINTS_MESSAGES[error_type].format(code=event_code),
            data={"event_code": event_code},
        )
        self.type = error_type.value
        if error_type is DoshPointsErrorType.event_not_found:
            self.status_code = HTTP_404_NOT_FOUND
        elif error_type is DoshPointsErrorType.already_earned:
            self.status_code = HTTP_409_CONFLICT


class RestrictionErrorType(enum.StrEnum):
    pin_locked = "ERR_USER_PIN_LOCKED"
    pin_rate_limited = "ERR_USER_PIN_RATE_LIMITED"
    account_deactivated = "ERR_USER_ACCOUNT_DEACTIVATED"


class RestrictionError(AppError):
    status_code = HTTP_423_LOCKED

    def __init__(
        self,
        error_type: RestrictionErrorType,
        message: str,
        *,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, data=data)
        self.type = error_type.value
        self.restriction_type = error_type
        if error_type is RestrictionErrorType.pin_rate_limited:
            self.status_code = HTTP_429_TOO_MANY_REQUESTS
        elif error_type is RestrictionErrorType.account_deactivated:
            self.status_code = HTTP_403_FORBIDDEN


# --- Module Notes -----------------------------------------------------------
# Database driver errors are not wrapped here; `api.errors` classifies SQLAlchemy
# IntegrityError/DBAPIError directly after they propagate out of the service layer.
