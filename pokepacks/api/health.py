"""
Health check endpoints.

Liveness and readiness probes. Readiness checks the database and reports
whether the pack list has loaded.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import get_pack_catalog
from pokepacks.db.database import get_session
from pokepacks.services.pack_catalog import PackCatalog

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    packs_loaded: bool | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    catalog: Annotated[PackCatalog, Depends(get_pack_catalog)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unavailable. An unloaded pack list does
    not fail readiness; packs fall back to the built-in list.
    """
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
    return HealthResponse(status="ready", database="connected", packs_loaded=catalog.ready)
