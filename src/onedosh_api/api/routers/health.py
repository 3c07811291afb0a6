"""
onedosh_api.api.routers.health

Liveness and readiness probes.

Responsibilities:
- `/healthz`: process is up, reports service name and environment.
- `/readyz`: database reachable and reference roles seeded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from onedosh_api.api.deps import db_session, settings_dep
from onedosh_api.db.models import Role
from onedosh_api.settings import Settings

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name, "env": settings.env}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    await session.execute(text("SELECT 1"))
    roles = (await session.execute(select(func.count()).select_from(Role))).scalar_one()
    if not roles:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Reference data not seeded")
    return {"status": "ready"}
