"""
Pack catalog.

The list of sets offered in the store, loaded once at startup and kept
until restart. Sources in order: local override file, cache file, live
catalog, built-in list.
"""

import json
import logging
import random
from pathlib import Path
from typing import Any

from pokepacks.config import FREE_PACK_FALLBACK_SET_ID, LATEST_SETS_COUNT
from pokepacks.models.failure import UpstreamUnavailableError
from pokepacks.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)


def builtin_packs(cost: int) -> list[dict[str, Any]]:
    """Packs offered when no other source is available."""
    return [
        {
            "id": "sv1",
            "name": "Scarlet & Violet",
            "series": "Scarlet & Violet",
            "releaseDate": "2023/03/31",
            "images": {},
            "cost": cost,
        },
        {
            "id": "sv2",
            "name": "Paldea Evolved",
            "series": "Scarlet & Violet",
            "releaseDate": "2023/06/09",
            "images": {},
            "cost": cost,
        },
        {
            "id": "swsh12pt5",
            "name": "Crown Zenith",
            "series": "Sword & Shield",
            "releaseDate": "2023/01/20",
            "images": {},
            "cost": cost,
        },
        {
            "id": "swsh12",
            "name": "Silver Tempest",
            "series": "Sword & Shield",
            "releaseDate": "2022/11/11",
            "images": {},
            "cost": cost,
        },
    ]


class PackCatalog:
    """Openable sets; empty and not ready until load() finishes."""

    def __init__(
        self,
        client: CatalogClient,
        local_path: Path,
        cache_path: Path,
        pack_cost: int,
    ) -> None:
        self.client = client
        self.local_path = local_path
        self.cache_path = cache_path
        self.pack_cost = pack_cost
        self.packs: list[dict[str, Any]] = []
        self.ready = False

    def _read_list(self, path: Path) -> list[dict[str, Any]] | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to read pack list %s: %s", path, e)
            return None
        return data if isinstance(data, list) else None

    def _publish(self, packs: list[dict[str, Any]], source: str) -> list[dict[str, Any]]:
        self.packs = packs
        self.ready = True
        logger.info("Loaded %d packs from %s", len(packs), source)
        return packs

    async def load(self) -> list[dict[str, Any]]:
        """Populate the pack list from the first source that works."""
        local = self._read_list(self.local_path)
        if local is not None:
            return self._publish(local, str(self.local_path))

        cached = self._read_list(self.cache_path)
        if cached:
            return self._publish(cached, str(self.cache_path))

        try:
            sets = await self.client.fetch_latest_sets(LATEST_SETS_COUNT)
        except UpstreamUnavailableError as e:
            logger.warning("Could not fetch pack list, using built-in packs: %s", e.detail)
            return self._publish(builtin_packs(self.pack_cost), "built-in list")

        packs = [
            {
                "id": s["id"],
                "name": s.get("name", s["id"]),
                "images": s.get("images") or {},
                "cost": self.pack_cost,
            }
            for s in sets
            if s.get("id")
        ]
        if not packs:
            return self._publish(builtin_packs(self.pack_cost), "built-in list")

        try:
            self.cache_path.write_text(json.dumps(packs, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write pack cache: %s", e)
        return self._publish(packs, "catalog API")

    def set_ids(self) -> list[str]:
        """Ids of all loaded packs."""
        return [str(p["id"]) for p in self.packs if p.get("id")]

    def random_set_id(self, rng: random.Random | None = None) -> str:
        """A uniformly chosen loaded set, or the fallback set if none."""
        ids = self.set_ids()
        if not ids:
            return FREE_PACK_FALLBACK_SET_ID
        return (rng or random.Random()).choice(ids)
