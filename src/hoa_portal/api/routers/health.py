"""
hoa_portal.api.routers.health

Probes for the process (`/healthz`) and its database (`/readyz`).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal import __version__
from hoa_portal.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, str]:
    return {
        "status": "ok",
        "version": __version__,
        "env": request.app.state.settings.env,
    }


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "database": session.get_bind().dialect.name}
