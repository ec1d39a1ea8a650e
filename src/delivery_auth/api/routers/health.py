"""
delivery_auth.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): the credential store answers and every
  principal table is present.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_auth.api.deps import db_session, settings_dep
from delivery_auth.db.repositories.principals import MODELS
from delivery_auth.settings import Settings

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, str]:
    # A service that cannot read the principal tables cannot verify tokens either.
    for model in MODELS.values():
        await session.execute(select(model.id).limit(1))
    return {"status": "ready", "service": settings.service_name}
