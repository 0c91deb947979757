"""
Database CRUD operations.

Provides async functions for registering and reading users, and for the
append-only collection store. Functions flush but never commit: the caller
owns the transaction.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.config import settings
from pokepacks.models.card import Card
from pokepacks.models.db import CollectionEntryDB, UserDB

logger = logging.getLogger(__name__)

# --- User Operations ---


async def get_user_by_username(session: AsyncSession, username: str) -> UserDB | None:
    """
    Get a user by username.

    Returns None if no user has registered with this name.
    """
    result = await session.execute(select(UserDB).where(UserDB.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> UserDB | None:
    """
    Get a user by primary key, re-reading the row from the database.

    Balance updates are issued as SQL UPDATE statements, so the identity map
    copy is refreshed here rather than trusted.
    """
    result = await session.execute(
        select(UserDB).where(UserDB.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession, username: str, starting_coins: int | None = None
) -> UserDB:
    """
    Create a new user with the starting balance.

    Raises IntegrityError if the username is taken.
    """
    if starting_coins is None:
        starting_coins = settings.starting_coins
    user = UserDB(username=username, poke_coins=starting_coins)
    session.add(user)
    await session.flush()
    return user


async def get_or_create_user(session: AsyncSession, username: str) -> tuple[UserDB, bool]:
    """
    Get existing user or register a new one.

    Registration is idempotent: if a concurrent request inserts the same
    username first, the winner's row is returned.

    Returns:
        Tuple of (user, created) where created is True if new.
    """
    user = await get_user_by_username(session, username)
    if user:
        return user, False

    try:
        user = await create_user(session, username)
    except IntegrityError:
        logger.info("USERNAME_RACE", extra={"username": username})
        await session.rollback()
        existing = await get_user_by_username(session, username)
        if existing is None:
            raise
        return existing, False

    logger.info("USER_REGISTERED", extra={"username": username, "user_id": user.id})
    return user, True


# --- Collection Operations ---


def entry_from_card(user_id: int, card: Card) -> CollectionEntryDB:
    """Build a collection row for a pulled card."""
    return CollectionEntryDB(
        user_id=user_id,
        card_id=card.id,
        card_image_url=card.image_url,
        card_rarity=card.rarity or "Unknown",
        set_id=card.set_id,
        set_name=card.set_name,
    )


async def append_collection_entries(
    session: AsyncSession, user_id: int, cards: Iterable[Card]
) -> list[CollectionEntryDB]:
    """
    Append pulled cards to a user's collection.

    Must run inside the same transaction as the ledger change that paid for
    the cards.
    """
    entries = [entry_from_card(user_id, card) for card in cards]
    session.add_all(entries)
    await session.flush()
    return entries


async def list_collection(session: AsyncSession, user_id: int) -> list[CollectionEntryDB]:
    """Get a user's pulled cards, newest first."""
    result = await session.execute(
        select(CollectionEntryDB)
        .where(CollectionEntryDB.user_id == user_id)
        .order_by(CollectionEntryDB.id.desc())
    )
    return list(result.scalars().all())
