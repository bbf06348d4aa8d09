"""
studio_authz.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide a liveness check (`/healthz`).
- Provide a readiness check (`/readyz`) covering DB connectivity and the catalog.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session
from studio_authz.authz.features import CATALOG
from studio_authz.authz.schemas import PROJECTIONS

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, object]:
    await session.execute(text("SELECT 1"))
    return {
        "status": "ready",
        "features": len(CATALOG),
        "projections": len(PROJECTIONS),
    }
