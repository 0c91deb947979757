"""
Pack API endpoints.

Lists openable sets and opens paid packs.
"""

import random
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import (
    get_card_pools,
    get_pack_catalog,
    get_rng,
    require_user,
)
from pokepacks.api.schemas import CamelModel, CardResponse, SetInfo, UserResponse
from pokepacks.config import DEFAULT_SET_ID, settings
from pokepacks.db.database import get_session
from pokepacks.services.card_pools import CardPoolProvider, is_valid_set_id
from pokepacks.services.pack_catalog import PackCatalog
from pokepacks.services.pack_opening import PackResult, open_pack

router = APIRouter(prefix="/api/packs", tags=["packs"])


class OpenPackRequest(CamelModel):
    """Request model for opening a pack."""

    username: str = Field(..., min_length=1, examples=["ash"])
    set_id: str | None = Field(
        default=None,
        description="Set to open; defaults to swsh1",
        examples=["sv1"],
    )

    @field_validator("set_id")
    @classmethod
    def check_set_id(cls, value: str | None) -> str | None:
        value = (value or "").strip()
        if not value:
            return None
        if not is_valid_set_id(value):
            raise ValueError("setId must be a catalog set id")
        return value


class PackResponse(BaseModel):
    """An opened pack."""

    user: UserResponse
    cards: list[CardResponse] = Field(default_factory=list)
    set: SetInfo


def pack_response(result: PackResult) -> PackResponse:
    return PackResponse(
        user=UserResponse.model_validate(result.user),
        cards=[CardResponse.from_card(card) for card in result.cards],
        set=SetInfo(id=result.set_id, name=result.set_name),
    )


@router.get("")
async def list_packs(
    catalog: Annotated[PackCatalog, Depends(get_pack_catalog)],
) -> list[dict[str, Any]]:
    """Openable sets. Empty until the startup warm-up has finished."""
    if not catalog.ready:
        return []
    return catalog.packs


@router.post(
    "/open",
    response_model=PackResponse,
    responses={400: {"description": "Not enough PokéCoins"}, 502: {"description": "Catalog down"}},
)
async def open_user_pack(
    request: OpenPackRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    pools: Annotated[CardPoolProvider, Depends(get_card_pools)],
    rng: Annotated[random.Random, Depends(get_rng)],
) -> PackResponse:
    """
    Open a pack from a set, paying the pack cost.

    Balance is checked first; the charge and the pulled cards are then
    committed together or not at all.
    """
    set_id = request.set_id or DEFAULT_SET_ID
    user = await require_user(session, request.username)
    result = await open_pack(session, user, set_id, pools, settings.pack_cost, rng=rng)
    return pack_response(result)
