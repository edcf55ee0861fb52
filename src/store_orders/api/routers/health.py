"""
store_orders.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`) tagged with service name and version.
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from store_orders import __version__
from store_orders.api.deps import db_session
from store_orders.settings import Settings, get_settings

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name, "version": __version__}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Users, products and orders all live in this one database.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}
