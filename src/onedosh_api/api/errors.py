"""
onedosh_api.api.errors

Exception-to-HTTP rendering.

Responsibilities:
- Render every error as `{statusCode, message, type, data, timestamp, path}`.
- Classify database driver errors (constraint violations, bad data, outages).
- Hide database details from clients in production.
"""

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from onedosh_api.errors import AppError
from onedosh_api.observability.logging import get_logger
from onedosh_api.settings import Settings

log = get_logger(__name__)

# ((sqlstate, message fragment), status, type, client message)
_INTEGRITY_KINDS: tuple[tuple[tuple[str, str], int, str, str], ...] = (
    (("23505", "unique constraint"), HTTP_409_CONFLICT, "UniqueViolation", "Resource already exists"),
    (("23502", "not null constraint"), HTTP_400_BAD_REQUEST, "NotNullViolation", "Missing required field"),
    (
        ("23503", "foreign key constraint"),
        HTTP_409_CONFLICT,
        "ForeignKeyViolation",
        "Referenced resource does not exist or is still in use",
    ),
    (("23514", "check constraint"), HTTP_400_BAD_REQUEST, "CheckViolation", "Invalid field value"),
)

GENERIC_DB_MESSAGE = "A database error occurred"


def error_body(
    *,
    status_code: int,
    message: str,
    type_: str,
    path: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "message": message,
        "type": type_,
        "data": data or {},
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "path": path,
    }


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def classify_integrity_error(exc: IntegrityError) -> tuple[int, str, str]:
    code = _sqlstate(exc) or ""
    text = str(exc.orig).lower()
    for needles, status, type_, message in _INTEGRITY_KINDS:
        if code == needles[0] or needles[1] in text:
            return status, type_, message
    return HTTP_409_CONFLICT, "IntegrityError", "Database constraint violated"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    def _db_response(
        request: Request, *, status_code: int, type_: str, message: str, exc: Exception
    ) -> JSONResponse:
        log.error(
            "database_error",
            error_type=type_,
            status_code=status_code,
            detail=str(getattr(exc, "orig", exc)),
        )
        data: dict[str, Any] = {}
        if settings.is_production:
            if status_code >= 500:
                message = GENERIC_DB_MESSAGE
        else:
            data = {"detail": str(getattr(exc, "orig", exc))}
        return JSONResponse(
            status_code=status_code,
            content=error_body(
                status_code=status_code,
                message=message,
                type_=type_,
                path=request.url.path,
                data=data,
            ),
        )

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("app_error", error_type=exc.type, message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                status_code=exc.status_code,
                message=exc.message,
                type_=exc.type,
                path=request.url.path,
                data=exc.data,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        try:
            phrase = HTTPStatus(exc.status_code).phrase.replace(" ", "")
        except ValueError:
            phrase = "HTTPException"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                status_code=exc.status_code,
                message=str(exc.detail),
                type_=phrase,
                path=request.url.path,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        message = errors[0]["message"] if errors else "Validation failed"
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=error_body(
                status_code=HTTP_400_BAD_REQUEST,
                message=message,
                type_="ValidationError",
                path=request.url.path,
                data={"errors": errors},
            ),
        )

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        status_code, type_, message = classify_integrity_error(exc)
        return _db_response(request, status_code=status_code, type_=type_, message=message, exc=exc)

    @app.exception_handler(DataError)
    async def _data_error(request: Request, exc: DataError) -> JSONResponse:
        return _db_response(
            request,
            status_code=HTTP_400_BAD_REQUEST,
            type_="DataError",
            message="Invalid data for this operation",
            exc=exc,
        )

    @app.exception_handler(DBAPIError)
    async def _dbapi_error(request: Request, exc: DBAPIError) -> JSONResponse:
        return _db_response(
            request,
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            type_="DatabaseError",
            message=GENERIC_DB_MESSAGE,
            exc=exc,
        )


# --- Module Notes -----------------------------------------------------------
# Handlers are matched by exception MRO, so IntegrityError/DataError win over DBAPIError.
