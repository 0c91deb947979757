"""
User API endpoints.

Registration is register-or-fetch: posting an existing username returns
that user unchanged.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import require_user
from pokepacks.api.schemas import UserResponse, UsernameRequest
from pokepacks.db.database import get_session
from pokepacks.db.operations import get_or_create_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", response_model=UserResponse)
async def register_user(
    request: UsernameRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserResponse:
    """Register a username, or return the existing user with that name."""
    user, _created = await get_or_create_user(session, request.username)
    return UserResponse.model_validate(user)


@router.get("/{username}", response_model=UserResponse)
async def get_user(
    username: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserResponse:
    """Get a user and their balance. 404 if not registered."""
    user = await require_user(session, username)
    return UserResponse.model_validate(user)
