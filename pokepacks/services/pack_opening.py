"""
Pack opening pipeline.

cost check -> pools -> draw -> debit -> collection append -> commit

The debit and the collection rows are written in one transaction. Any
failure after the first write rolls both back, so a user never pays for a
pack without receiving it, or receives one without paying.
"""

import logging
import random
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.db.operations import append_collection_entries, get_user_by_id
from pokepacks.models.card import Card
from pokepacks.models.db import UserDB
from pokepacks.models.failure import InsufficientFundsError
from pokepacks.services import ledger
from pokepacks.services.card_pools import CardPoolProvider
from pokepacks.services.pack_draw import draw

logger = logging.getLogger(__name__)


@dataclass
class PackResult:
    """Outcome of a pack opening."""

    user: UserDB
    cards: list[Card]
    set_id: str
    set_name: str


async def _draw_pack(
    pools_provider: CardPoolProvider, set_id: str, rng: random.Random | None
) -> tuple[list[Card], str]:
    pools = await pools_provider.get_pools(set_id)
    cards = draw(pools, rng=rng)
    set_name = (cards[0].set_name if cards else None) or set_id
    return cards, set_name


async def open_pack(
    session: AsyncSession,
    user: UserDB,
    set_id: str,
    pools_provider: CardPoolProvider,
    cost: int,
    rng: random.Random | None = None,
) -> PackResult:
    """
    Open a paid pack and commit the result.

    Raises:
        InsufficientFundsError: Before any change if the balance is short
        UpstreamUnavailableError: If pools are unavailable and fallback is off
    """
    user_id = user.id
    if user.poke_coins < cost:
        raise InsufficientFundsError(balance=user.poke_coins, cost=cost)

    # Pools resolve before the first write
    cards, set_name = await _draw_pack(pools_provider, set_id, rng)

    try:
        await ledger.debit(session, user_id, cost)
        await append_collection_entries(session, user_id, cards)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.warning("PACK_OPEN_ROLLED_BACK", extra={"user_id": user_id, "set_id": set_id})
        raise

    updated = await get_user_by_id(session, user_id)
    logger.info(
        "PACK_OPENED",
        extra={"user_id": user_id, "set_id": set_id, "cards": len(cards), "cost": cost},
    )
    return PackResult(user=updated or user, cards=cards, set_id=set_id, set_name=set_name)


async def grant_free_pack(
    session: AsyncSession,
    user: UserDB,
    set_id: str,
    pools_provider: CardPoolProvider,
    rng: random.Random | None = None,
) -> PackResult:
    """
    Draw a pack at no cost and stage it in the caller's transaction.

    The caller commits or rolls back.
    """
    cards, set_name = await _draw_pack(pools_provider, set_id, rng)
    await append_collection_entries(session, user.id, cards)
    return PackResult(user=user, cards=cards, set_id=set_id, set_name=set_name)
