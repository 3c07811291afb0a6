"""
tests.test_errors

Error body shape, database error classification and log masking.
"""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError
from starlette.requests import Request

from onedosh_api.api.app import create_app
from onedosh_api.api.errors import classify_integrity_error
from onedosh_api.observability.logging import mask_sensitive_fields
from onedosh_api.observability.middleware import client_ip
from onedosh_api.settings import Settings


class _PgError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, orig)


@pytest.mark.parametrize(
    ("orig", "status", "type_"),
    [
        (Exception("UNIQUE constraint failed: users.email"), 409, "UniqueViolation"),
        (Exception("NOT NULL constraint failed: users.email"), 400, "NotNullViolation"),
        (Exception("FOREIGN KEY constraint failed"), 409, "ForeignKeyViolation"),
        (Exception("CHECK constraint failed: amount"), 400, "CheckViolation"),
        (_PgError("duplicate key value violates", "23505"), 409, "UniqueViolation"),
        (_PgError("violates row-level policy", "23514"), 400, "CheckViolation"),
        (Exception("something odd"), 409, "IntegrityError"),
    ],
)
def test_classify_integrity_error(orig: Exception, status: int, type_: str) -> None:
    got_status, got_type, _ = classify_integrity_error(_integrity(orig))
    assert (got_status, got_type) == (status, type_)


def test_mask_sensitive_fields() -> None:
    event = {"event": "login", "password": "hunter2", "Authorization": "Bearer x", "pin": None, "user_id": "u1"}
    masked = mask_sensitive_fields(None, "info", event)
    assert masked["password"] == "***"
    assert masked["Authorization"] == "***"
    assert masked["pin"] is None
    assert masked["user_id"] == "u1"


def test_client_ip_prefers_forwarded_for() -> None:
    scope = {
        "type": "http",
        "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1")],
        "client": ("10.0.0.1", 1234),
    }
    assert client_ip(Request(scope)) == "203.0.113.7"
    assert client_ip(Request({"type": "http", "headers": [], "client": ("10.0.0.2", 1)})) == "10.0.0.2"


def _app_with_failing_routes(settings: Settings):
    app = create_app(settings=settings)

    @app.get("/boom/unique")
    async def _unique() -> None:
        raise _integrity(Exception("UNIQUE constraint failed: users.username"))

    @app.get("/boom/db")
    async def _db() -> None:
        raise DBAPIError("SELECT 1", {}, Exception("connection refused"))

    return app


@pytest.mark.asyncio
@pytest.mark.parametrize("env", ["test", "prod"])
async def test_database_errors_render_standard_body(settings: Settings, env: str) -> None:
    app = _app_with_failing_routes(settings.model_copy(update={"env": env}))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/boom/unique")
        assert r.status_code == 409
        body = r.json()
        assert body["type"] == "UniqueViolation"
        assert body["message"] == "Resource already exists"
        assert body["statusCode"] == 409
        assert body["path"] == "/boom/unique"

        r = await client.get("/boom/db")
        assert r.status_code == 500
        assert r.json()["message"] == "A database error occurred"

    if env == "prod":
        assert body["data"] == {}
    else:
        assert "UNIQUE constraint failed" in body["data"]["detail"]


@pytest.mark.asyncio
async def test_unknown_route_uses_standard_body(client) -> None:
    r = await client.get("/v1/nowhere")
    assert r.status_code == 404
    body = r.json()
    assert body["type"] == "NotFound"
    assert body["message"] == "Not Found"
    assert body["timestamp"]
