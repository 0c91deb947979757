"""
FastAPI dependencies for per-application state.

The pool cache, pack catalog, challenge registry, and random source live on
app.state (see main.configure_state). Tests swap them out with
app.dependency_overrides.
"""

import random
import secrets
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.config import settings
from pokepacks.db.operations import get_user_by_username
from pokepacks.models.db import UserDB
from pokepacks.models.failure import AdminNotConfiguredError, NotFoundError, UnauthorizedError
from pokepacks.services.card_pools import CardPoolProvider
from pokepacks.services.catalog_client import CatalogClient, PokeApiClient
from pokepacks.services.challenges import ChallengeRegistry
from pokepacks.services.pack_catalog import PackCatalog


def get_card_pools(request: Request) -> CardPoolProvider:
    provider: CardPoolProvider = request.app.state.card_pools
    return provider


def get_pack_catalog(request: Request) -> PackCatalog:
    catalog: PackCatalog = request.app.state.pack_catalog
    return catalog


def get_catalog_client(request: Request) -> CatalogClient:
    client: CatalogClient = request.app.state.catalog_client
    return client


def get_challenges(request: Request) -> ChallengeRegistry:
    registry: ChallengeRegistry = request.app.state.challenges
    return registry


def get_pokeapi(request: Request) -> PokeApiClient:
    client: PokeApiClient = request.app.state.pokeapi
    return client


def get_rng(request: Request) -> random.Random:
    rng: random.Random = request.app.state.rng
    return rng


async def require_user(session: AsyncSession, username: str) -> UserDB:
    """
    Load a user by name.

    Raises:
        NotFoundError: If no such user is registered
    """
    user = await get_user_by_username(session, username)
    if user is None:
        raise NotFoundError("User", username)
    return user


def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """
    Check the shared admin secret.

    Raises:
        AdminNotConfiguredError: If the server has no admin token (500)
        UnauthorizedError: If the header is missing or does not match (401)
    """
    if not settings.admin_token:
        raise AdminNotConfiguredError()
    if not x_admin_token or not secrets.compare_digest(
        x_admin_token.encode(), settings.admin_token.encode()
    ):
        raise UnauthorizedError()


AdminGuard = Annotated[None, Depends(require_admin)]
