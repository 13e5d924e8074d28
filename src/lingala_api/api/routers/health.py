"""
lingala_api.api.routers.health

Liveness (`/healthz`) and readiness (`/readyz`) probes. Readiness needs one DB round
trip and a running admin session reaper.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE

from lingala_api.api.deps import admin_store_dep, db_session
from lingala_api.auth.admin_sessions import AdminSessionStore

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    store: AdminSessionStore = Depends(admin_store_dep),
) -> JSONResponse:
    await session.execute(text("SELECT 1"))
    reaper = "running" if store.reaper_running else "stopped"
    ready = store.reaper_running
    return JSONResponse(
        status_code=HTTP_200_OK if ready else HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "degraded", "database": "ok", "sessionReaper": reaper},
    )
