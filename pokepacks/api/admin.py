"""
Admin API endpoints.

Every route requires the X-Admin-Token header to match the configured
admin token. With no token configured the routes answer 500.
"""

import logging
import math
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import (
    AdminGuard,
    get_card_pools,
    get_catalog_client,
    get_pack_catalog,
    require_user,
)
from pokepacks.api.schemas import CamelModel, UserResponse
from pokepacks.config import settings
from pokepacks.db.database import get_session
from pokepacks.jobs.download_cards import download_all_cards
from pokepacks.models.failure import InvalidRequestError
from pokepacks.services import ledger
from pokepacks.services.card_pools import CardPoolProvider, is_valid_set_id
from pokepacks.services.catalog_client import CatalogClient
from pokepacks.services.pack_catalog import PackCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class SetCoinsRequest(BaseModel):
    username: str = Field(..., min_length=1)
    amount: Any = None


class WarmCacheRequest(CamelModel):
    set_id: str | None = None
    all: bool | None = None
    force: bool = False

    @field_validator("set_id")
    @classmethod
    def check_set_id(cls, value: str | None) -> str | None:
        value = (value or "").strip()
        if value and not is_valid_set_id(value):
            raise ValueError("setId must be a catalog set id")
        return value or None


class WarmCacheResponse(BaseModel):
    warmed: int
    results: list[dict[str, Any]]


class JobStartedResponse(BaseModel):
    message: str


def _coerce_amount(amount: Any) -> Any:
    """Floor finite non-negative numbers; anything else is left for the ledger to reject."""
    if isinstance(amount, float) and math.isfinite(amount) and amount >= 0:
        return math.floor(amount)
    return amount


def _warm_targets(request: WarmCacheRequest, catalog: PackCatalog) -> list[str]:
    set_id = (request.set_id or "").strip()
    if request.all is True or set_id == "all" or (not set_id and request.all is not False):
        return catalog.set_ids()
    if set_id:
        return [set_id]
    raise InvalidRequestError("Provide setId or all=true")


async def _run_download(client: CatalogClient) -> None:
    try:
        result = await download_all_cards(client, settings.cache_dir)
    except Exception:
        logger.exception("CATALOG_DOWNLOAD_FAILED")
        return
    logger.info("Card database update completed: %s", result)


@router.post("/set-coins", response_model=UserResponse)
async def set_coins(
    request: SetCoinsRequest,
    _admin: AdminGuard,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserResponse:
    """Overwrite a user's balance."""
    user = await require_user(session, request.username)
    updated = await ledger.set_balance(session, user.id, _coerce_amount(request.amount))
    await session.commit()
    return UserResponse.model_validate(updated)


@router.post("/warm-set-cache", response_model=WarmCacheResponse)
async def warm_set_cache(
    request: WarmCacheRequest,
    _admin: AdminGuard,
    pools: Annotated[CardPoolProvider, Depends(get_card_pools)],
    catalog: Annotated[PackCatalog, Depends(get_pack_catalog)],
) -> WarmCacheResponse:
    """
    Build card pools ahead of time.

    Targets one set, or every loaded pack when setId is omitted, "all", or
    all=true. force drops the cached pools and per-set file first.
    """
    targets = _warm_targets(request, catalog)
    results = await pools.warm(targets, force=request.force)
    return WarmCacheResponse(warmed=len(results), results=results)


@router.post("/fetch-all-cards", response_model=JobStartedResponse)
async def fetch_all_cards(
    _admin: AdminGuard,
    background_tasks: BackgroundTasks,
    client: Annotated[CatalogClient, Depends(get_catalog_client)],
) -> JobStartedResponse:
    """Start the full catalog download in the background."""
    if not client.api_key:
        raise InvalidRequestError(
            "Catalog API key is not configured",
            detail="Set POKEMON_TCG_API_KEY to download the full catalog",
        )
    background_tasks.add_task(_run_download, client)
    return JobStartedResponse(message="Card database update started in the background")
