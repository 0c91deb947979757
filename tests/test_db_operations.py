"""Tests for database CRUD operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_cards
from pokepacks.config import settings
from pokepacks.db.operations import (
    append_collection_entries,
    create_user,
    entry_from_card,
    get_or_create_user,
    get_user_by_id,
    get_user_by_username,
    list_collection,
)
from pokepacks.models.card import Card


class TestUserOperations:
    async def test_create_user_gets_starting_coins(self, session: AsyncSession) -> None:
        """New users start with the configured balance."""
        user = await create_user(session, "ash")

        assert user.id is not None
        assert user.poke_coins == settings.starting_coins

    async def test_get_user_by_username(self, session: AsyncSession) -> None:
        await create_user(session, "ash")
        await session.commit()

        user = await get_user_by_username(session, "ash")

        assert user is not None
        assert user.username == "ash"

    async def test_get_missing_user(self, session: AsyncSession) -> None:
        assert await get_user_by_username(session, "nobody") is None
        assert await get_user_by_id(session, 404) is None

    async def test_get_or_create_is_idempotent(self, session: AsyncSession) -> None:
        """Registering twice returns the same user, unchanged."""
        first, created_first = await get_or_create_user(session, "ash")
        await session.commit()
        second, created_second = await get_or_create_user(session, "ash")

        assert created_first is True
        assert created_second is False
        assert first.id == second.id
        assert second.poke_coins == settings.starting_coins


class TestCollectionOperations:
    async def test_entry_from_card(self) -> None:
        """Collection rows keep the large image and set info."""
        card = make_cards("sv1", "Rare Holo", 1)[0]

        entry = entry_from_card(7, card)

        assert entry.user_id == 7
        assert entry.card_id == card.id
        assert entry.card_image_url == card.image_large
        assert entry.card_rarity == "Rare Holo"
        assert entry.set_id == "sv1"

    async def test_missing_rarity_stored_as_unknown(self) -> None:
        entry = entry_from_card(1, Card(id="x-1", name="X"))

        assert entry.card_rarity == "Unknown"
        assert entry.card_image_url == ""

    async def test_append_and_list_newest_first(self, session: AsyncSession) -> None:
        """Entries come back in reverse pull order."""
        user = await create_user(session, "ash")
        cards = make_cards("sv1", "Common", 3)

        await append_collection_entries(session, user.id, cards)
        await session.commit()

        entries = await list_collection(session, user.id)
        assert [e.card_id for e in entries] == [c.id for c in reversed(cards)]

    async def test_duplicates_are_separate_rows(self, session: AsyncSession) -> None:
        """Pulling the same card twice stores two rows."""
        user = await create_user(session, "ash")
        card = make_cards("sv1", "Common", 1)[0]

        await append_collection_entries(session, user.id, [card, card])
        await session.commit()

        assert len(await list_collection(session, user.id)) == 2

    async def test_collections_are_per_user(self, session: AsyncSession) -> None:
        ash = await create_user(session, "ash")
        misty = await create_user(session, "misty")
        await append_collection_entries(session, ash.id, make_cards("sv1", "Common", 2))
        await session.commit()

        assert await list_collection(session, misty.id) == []
