"""
Rarity pools for one collection.

Every catalog card lands in exactly one bucket. The rule is total: labels
that are neither common, uncommon, nor a rare variant fall back to Uncommon.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from pokepacks.models.card import Card


class Bucket(str, Enum):
    """Rarity tier used for pack slots."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE_OR_HIGHER = "RareOrHigher"


# Labels that count as rare even without a leading "Rare"
RARE_MARKERS = (
    "Amazing Rare",
    "Promo",
    "Rare Holo VSTAR",
    "Rare Secret",
    "Rare Ultra",
)


def classify_rarity(rarity: str | None) -> Bucket:
    """
    Map a catalog rarity label to its bucket.

    Missing labels are treated as "Unknown" and fall back to Uncommon.
    """
    label = rarity or "Unknown"
    if label == "Common":
        return Bucket.COMMON
    if label == "Uncommon":
        return Bucket.UNCOMMON
    if label.startswith("Rare") or any(marker in label for marker in RARE_MARKERS):
        return Bucket.RARE_OR_HIGHER
    # Trainer and unknown rarities
    return Bucket.UNCOMMON


@dataclass
class RarityPools:
    """Cards of one collection partitioned by bucket."""

    common: list[Card] = field(default_factory=list)
    uncommon: list[Card] = field(default_factory=list)
    rare_or_higher: list[Card] = field(default_factory=list)

    def get(self, bucket: Bucket) -> list[Card]:
        """Cards in a bucket."""
        if bucket is Bucket.COMMON:
            return self.common
        if bucket is Bucket.UNCOMMON:
            return self.uncommon
        return self.rare_or_higher

    def counts(self) -> dict[str, int]:
        """Bucket sizes keyed by bucket name."""
        return {bucket.value: len(self.get(bucket)) for bucket in Bucket}

    def total(self) -> int:
        """Total number of cards across buckets."""
        return len(self.common) + len(self.uncommon) + len(self.rare_or_higher)

    def union(self) -> list[Card]:
        """All cards, commons first."""
        return [*self.common, *self.uncommon, *self.rare_or_higher]


def partition_by_rarity(cards: Iterable[Card]) -> RarityPools:
    """Partition cards into rarity buckets."""
    pools = RarityPools()
    for card in cards:
        pools.get(classify_rarity(card.rarity)).append(card)
    return pools
