"""
Pack draw engine.

A pack is built from an ordered template of slots. Each slot names a
preference chain of buckets and a count; the first bucket in the chain with
undrawn cards is sampled. Short buckets give what they have, and a final
top-up from all buckets fills the pack to its target size.

Cards are drawn without replacement across the whole pack, so a fallback
chain that revisits a bucket never repeats a card.

INVARIANT: len(draw(pools)) == min(target, pools.total()), and empty pools
yield an empty pack rather than an error.
"""

import random
from collections.abc import Sequence
from dataclasses import dataclass

from pokepacks.models.card import Card
from pokepacks.models.pools import Bucket, RarityPools


@dataclass(frozen=True, slots=True)
class DrawStep:
    """One pack slot group: bucket preference chain and number of cards."""

    chain: tuple[Bucket, ...]
    count: int


# 1 rare-or-higher, 3 uncommons, 6 commons
DEFAULT_PACK_TEMPLATE: tuple[DrawStep, ...] = (
    DrawStep((Bucket.RARE_OR_HIGHER, Bucket.UNCOMMON, Bucket.COMMON), 1),
    DrawStep((Bucket.UNCOMMON, Bucket.COMMON), 3),
    DrawStep((Bucket.COMMON, Bucket.UNCOMMON, Bucket.RARE_OR_HIGHER), 6),
)


def pack_target(template: Sequence[DrawStep]) -> int:
    """Number of cards a full pack contains."""
    return sum(step.count for step in template)


def _take(cards: list[Card], n: int, rng: random.Random) -> tuple[list[Card], list[Card]]:
    """Sample up to n cards; returns (picked, rest)."""
    if n <= 0 or not cards:
        return [], cards
    chosen = rng.sample(range(len(cards)), min(n, len(cards)))
    picked = [cards[i] for i in chosen]
    taken = set(chosen)
    rest = [card for i, card in enumerate(cards) if i not in taken]
    return picked, rest


def pick_n(cards: Sequence[Card], n: int, rng: random.Random) -> list[Card]:
    """Sample up to n cards without replacement."""
    picked, _ = _take(list(cards), n, rng)
    return picked


def draw(
    pools: RarityPools,
    template: Sequence[DrawStep] = DEFAULT_PACK_TEMPLATE,
    rng: random.Random | None = None,
) -> list[Card]:
    """Draw a pack from rarity pools, rarest slot first."""
    rng = rng or random.Random()
    remaining = RarityPools(
        common=list(pools.common),
        uncommon=list(pools.uncommon),
        rare_or_higher=list(pools.rare_or_higher),
    )
    pulled: list[Card] = []

    for step in template:
        for bucket in step.chain:
            cards = remaining.get(bucket)
            if cards:
                picked, rest = _take(cards, step.count, rng)
                cards[:] = rest
                pulled.extend(picked)
                break

    target = pack_target(template)
    if len(pulled) < target:
        pulled.extend(pick_n(remaining.union(), target - len(pulled), rng))

    return pulled
