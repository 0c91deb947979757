"""
Download the full card catalog.

Pages through every card, keeping the aggregate file current after each
page, then splits it into per-set cache files the pool provider reads.

Run with: python -m pokepacks.jobs.download_cards
"""

import asyncio
import json
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Any

from pokepacks.config import settings
from pokepacks.models.failure import InvalidRequestError
from pokepacks.services.card_pools import ALL_CARDS_FILENAME, is_valid_set_id, set_cache_path
from pokepacks.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)

# Fields kept from each raw catalog card
KEPT_FIELDS = ("id", "name", "images", "set", "rarity", "number", "tcgplayer", "cardmarket")


def _clean(card: dict[str, Any]) -> dict[str, Any]:
    return {key: card.get(key) for key in KEPT_FIELDS}


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to a temp file and rename it over the target."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(tmp, path)


def group_by_set(cards: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group cards by set id, skipping cards without one."""
    by_set: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for card in cards:
        set_id = (card.get("set") or {}).get("id")
        if set_id:
            by_set[set_id].append(card)
    return dict(by_set)


async def download_all_cards(
    client: CatalogClient,
    cache_dir: Path,
    page_delay: float = 1.0,
) -> dict[str, int]:
    """
    Download every card and rebuild the file caches.

    Returns:
        {"totalCards": ..., "totalSets": ...}

    Raises:
        InvalidRequestError: If no API key is configured
        UpstreamUnavailableError: If a page fails after retries; the
            aggregate file keeps every page fetched so far
    """
    if not client.api_key:
        raise InvalidRequestError(
            "Catalog API key is not configured",
            detail="Set POKEMON_TCG_API_KEY to download the full catalog",
        )

    cache_dir.mkdir(parents=True, exist_ok=True)
    all_cards_path = cache_dir / ALL_CARDS_FILENAME
    all_cards: list[dict[str, Any]] = []

    async for page in client.iter_all_card_pages(page_delay=page_delay):
        all_cards.extend(_clean(card) for card in page)
        write_json_atomic(all_cards_path, all_cards)
        logger.info("Fetched %d cards (total: %d)", len(page), len(all_cards))

    by_set = group_by_set(all_cards)
    for set_id, cards in by_set.items():
        if not is_valid_set_id(set_id):
            logger.warning("Skipping set file for unusable set id %r", set_id)
            continue
        set_cache_path(cache_dir, set_id).write_text(json.dumps(cards, indent=2), encoding="utf-8")

    logger.info(
        "CATALOG_DOWNLOADED",
        extra={"total_cards": len(all_cards), "total_sets": len(by_set)},
    )
    return {"totalCards": len(all_cards), "totalSets": len(by_set)}


async def run_download() -> dict[str, int]:
    """Download the card catalog using application settings."""
    logger.info("Downloading card catalog...")

    client = CatalogClient(
        settings.pokemon_tcg_api_url,
        api_key=settings.pokemon_tcg_api_key,
        timeout=settings.catalog_timeout_seconds,
    )
    try:
        result = await download_all_cards(client, settings.cache_dir)
        logger.info("Downloaded %d cards in %d sets", result["totalCards"], result["totalSets"])
        return result
    except Exception as e:
        logger.error("Failed to download card catalog: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_download())


if __name__ == "__main__":
    main()
