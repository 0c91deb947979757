"""
Card pool provider.

Resolves the rarity pools for a set, preferring the cheapest source:

1. Fresh in-memory entry (within TTL)
2. Per-set cache file
3. Aggregate catalog file filtered by set
4. Live catalog fetch (written back to memory and the per-set file)
5. Stale in-memory entry, if the fetch failed
6. Synthetic sample pool, so a pack can always be opened

INVARIANT: A fetch failure never reaches the caller while fallback is enabled.
"""

import json
import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pokepacks.models.card import Card
from pokepacks.models.failure import InvalidRequestError, UpstreamUnavailableError
from pokepacks.models.pools import RarityPools, partition_by_rarity
from pokepacks.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)

ALL_CARDS_FILENAME = "all-pokemon-cards.json"

# Image shown for synthetic sample cards
PLACEHOLDER_IMAGE = "https://images.pokemontcg.io/sv1/1_small.jpg"

# Synthetic pool shape: (id prefix, rarity label, count)
FALLBACK_POOL_SHAPE = (
    ("common", "Common", 20),
    ("uncommon", "Uncommon", 10),
    ("rare", "Rare", 10),
)


# Catalog set ids: dot-separated runs of letters, digits, "_" and "-"
SET_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$")


def is_valid_set_id(set_id: object) -> bool:
    return isinstance(set_id, str) and len(set_id) <= 64 and bool(SET_ID_PATTERN.match(set_id))


def set_cache_path(cache_dir: Path, set_id: str) -> Path:
    """
    Per-set cache file location.

    Raises:
        InvalidRequestError: If the set id is malformed or the file would
            land outside cache_dir
    """
    if not is_valid_set_id(set_id):
        raise InvalidRequestError("Invalid set id", detail=f"Received: {set_id!r}")
    path = cache_dir / f"{set_id}-cards-cache.json"
    if not path.resolve().is_relative_to(cache_dir.resolve()):
        raise InvalidRequestError("Invalid set id", detail=f"Received: {set_id!r}")
    return path


def parse_cards(raw: Iterable[Any], source: str) -> list[Card]:
    """
    Build cards from cached JSON items, skipping malformed entries.

    An entry must be an object with an "id" to be kept.
    """
    cards: list[Card] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, dict) or not item.get("id"):
            skipped += 1
            continue
        try:
            cards.append(Card.from_api(item))
        except (AttributeError, TypeError, ValueError):
            skipped += 1
    if skipped:
        logger.warning("Skipped %d malformed card entries in %s", skipped, source)
    return cards


def _set_id_of(item: Any) -> Any:
    if not isinstance(item, dict):
        return None
    card_set = item.get("set")
    return card_set.get("id") if isinstance(card_set, dict) else None


def build_fallback_pools(set_id: str) -> RarityPools:
    """
    Build the synthetic sample pool for a set.

    Used when neither caches nor the live catalog can supply cards.
    """
    cards: list[Card] = []
    for prefix, rarity, count in FALLBACK_POOL_SHAPE:
        for i in range(1, count + 1):
            cards.append(
                Card(
                    id=f"{set_id}-{prefix}-{i}",
                    name=f"Sample {rarity} {prefix}-{i}",
                    rarity=rarity,
                    image_small=PLACEHOLDER_IMAGE,
                    image_large=PLACEHOLDER_IMAGE,
                    set_id=set_id,
                    set_name=set_id,
                )
            )
    return partition_by_rarity(cards)


@dataclass
class _CacheEntry:
    pools: RarityPools
    expires_at: float


class CardPoolProvider:
    """
    Per-application cache of rarity pools keyed by set id.

    Entries past their TTL are kept so they can be served if the catalog
    is down.
    """

    def __init__(
        self,
        client: CatalogClient,
        cache_dir: Path,
        ttl_seconds: float,
        allow_fallback: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.cache_dir = cache_dir
        self.ttl_seconds = ttl_seconds
        self.allow_fallback = allow_fallback
        self.clock = clock
        self._cache: dict[str, _CacheEntry] = {}

    def _remember(self, set_id: str, pools: RarityPools) -> RarityPools:
        self._cache[set_id] = _CacheEntry(pools=pools, expires_at=self.clock() + self.ttl_seconds)
        return pools

    def _read_cards(self, path: Path) -> list[dict[str, Any]] | None:
        """Read a JSON card list, or None if missing or unreadable."""
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Cache read failed for %s: %s", path, e)
            return None
        if not isinstance(data, list):
            logger.warning("Cache file %s does not hold a card list", path)
            return None
        return data

    def _write_set_cache(self, set_id: str, cards: Iterable[dict[str, Any]]) -> None:
        path = set_cache_path(self.cache_dir, set_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(list(cards), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to save cache for %s: %s", set_id, e)

    def _load_from_files(self, set_id: str) -> list[Card] | None:
        """Steps 2 and 3: per-set file, then the aggregate file."""
        set_path = set_cache_path(self.cache_dir, set_id)
        cards = parse_cards(self._read_cards(set_path) or [], str(set_path))
        if cards:
            logger.info("Using set cache for %s (%d cards)", set_id, len(cards))
            return cards

        all_path = self.cache_dir / ALL_CARDS_FILENAME
        all_cards = self._read_cards(all_path)
        if all_cards is None:
            return None

        in_set = (item for item in all_cards if _set_id_of(item) == set_id)
        cards = parse_cards(in_set, str(all_path))
        if not cards:
            logger.info("No cards for set %s in aggregate cache", set_id)
            return None

        logger.info("Using aggregate cache for set %s (%d cards)", set_id, len(cards))
        self._write_set_cache(set_id, (card.to_api() for card in cards))
        return cards

    def cached(self, set_id: str) -> RarityPools | None:
        """In-memory pools for a set, fresh or stale."""
        entry = self._cache.get(set_id)
        return entry.pools if entry else None

    async def get_pools(self, set_id: str) -> RarityPools:
        """
        Resolve rarity pools for a set.

        Raises:
            InvalidRequestError: If the set id is malformed
            UpstreamUnavailableError: Only when fallback is disabled and
                no cache or live source produced cards
        """
        if not is_valid_set_id(set_id):
            raise InvalidRequestError("Invalid set id", detail=f"Received: {set_id!r}")

        entry = self._cache.get(set_id)
        if entry and entry.expires_at > self.clock():
            return entry.pools

        cards = self._load_from_files(set_id)
        if cards:
            return self._remember(set_id, partition_by_rarity(cards))

        logger.info("Fetching cards for set %s from API", set_id)
        try:
            cards = await self.client.fetch_set_cards(set_id)
        except UpstreamUnavailableError:
            if entry:
                logger.warning(
                    "STALE_POOL_SERVED",
                    extra={"set_id": set_id, "counts": entry.pools.counts()},
                )
                return entry.pools
            if not self.allow_fallback:
                raise
            logger.warning("FALLBACK_POOL_SERVED", extra={"set_id": set_id})
            return build_fallback_pools(set_id)

        if not cards:
            # Unknown sets are neither remembered nor written to disk
            return partition_by_rarity(cards)

        pools = self._remember(set_id, partition_by_rarity(cards))
        self._write_set_cache(set_id, (card.to_api() for card in cards))
        return pools

    def invalidate(self, set_id: str, remove_files: bool = False) -> None:
        """Forget a set's pools, optionally deleting its per-set cache file."""
        self._cache.pop(set_id, None)
        if remove_files:
            set_cache_path(self.cache_dir, set_id).unlink(missing_ok=True)

    async def warm(self, set_ids: Iterable[str], force: bool = False) -> list[dict[str, Any]]:
        """
        Build pools for several sets ahead of time.

        Returns:
            One report per set: {"setId", "ok", "counts"} or {"setId", "ok", "error"}
        """
        results: list[dict[str, Any]] = []
        for set_id in set_ids:
            try:
                if force:
                    self.invalidate(set_id, remove_files=True)
                pools = await self.get_pools(set_id)
            except (InvalidRequestError, UpstreamUnavailableError) as e:
                results.append({"setId": set_id, "ok": False, "error": e.message})
                continue
            results.append({"setId": set_id, "ok": True, "counts": pools.counts()})
        return results
