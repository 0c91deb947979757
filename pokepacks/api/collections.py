"""
Collection API endpoints.

Read-only view of the cards a user has pulled.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import require_user
from pokepacks.db.database import get_session
from pokepacks.db.operations import list_collection

router = APIRouter(prefix="/api/collections", tags=["collections"])


class CollectionEntryResponse(BaseModel):
    """One pulled card."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    card_id: str
    card_image_url: str
    card_rarity: str
    set_id: str | None = None
    set_name: str | None = None


@router.get("/{username}", response_model=list[CollectionEntryResponse])
async def get_user_collection(
    username: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[CollectionEntryResponse]:
    """
    Get a user's pulled cards, newest first.

    Returns 404 if the user is not registered.
    """
    user = await require_user(session, username)
    entries = await list_collection(session, user.id)
    return [CollectionEntryResponse.model_validate(entry) for entry in entries]
