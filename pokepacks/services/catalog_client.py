"""
Clients for the external card catalog and Pokémon artwork APIs.

Every request goes through a RetryPolicy. Failures that survive the retries
are wrapped in UpstreamUnavailableError so callers see one error type.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from typing import Any

import httpx

from pokepacks.config import LATEST_SETS_COUNT
from pokepacks.models.card import Card
from pokepacks.models.failure import UpstreamUnavailableError
from pokepacks.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Maximum page size accepted by the catalog API
PAGE_SIZE = 250

# Only the fields needed to build packs and show cards
CARD_FIELDS = "id,name,rarity,images,number,set"

# Pause between full-catalog pages to stay under the API rate limit
_INGEST_PAGE_DELAY = 1.0

# Highest National Dex number with artwork on PokeAPI
MAX_POKEMON_ID = 1025


class CatalogClient:
    """Async client for the trading card catalog API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()

    @property
    def headers(self) -> dict[str, str]:
        """Request headers, with the API key when configured."""
        if self.api_key:
            return {"X-Api-Key": self.api_key}
        return {}

    async def _get_json(
        self, client: httpx.AsyncClient, path: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        """GET a catalog path with retries and return the decoded body."""

        async def attempt() -> dict[str, Any]:
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return data

        return await self.retry_policy.run(attempt)

    async def fetch_set_cards(self, set_id: str) -> list[Card]:
        """
        Fetch every card in a set, following pagination until exhausted.

        Raises:
            UpstreamUnavailableError: If any page fails after retries
        """
        cards: list[Card] = []
        page = 1
        total_count: float = float("inf")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
                while (page - 1) * PAGE_SIZE < total_count:
                    data = await self._get_json(
                        client,
                        "/cards",
                        {
                            "q": f"set.id:{set_id}",
                            "page": page,
                            "pageSize": PAGE_SIZE,
                            "select": CARD_FIELDS,
                        },
                    )
                    batch = data.get("data") or []
                    cards.extend(Card.from_api(item) for item in batch)
                    total_count = data.get("totalCount", data.get("count", page * PAGE_SIZE))
                    page += 1
        except httpx.HTTPError as e:
            logger.error("Card pool fetch failed for %s: %s", set_id, e)
            raise UpstreamUnavailableError("card catalog", detail=f"set {set_id}") from e

        return cards

    async def fetch_latest_sets(self, count: int = LATEST_SETS_COUNT) -> list[dict[str, Any]]:
        """
        Fetch the most recently released sets.

        Raises:
            UpstreamUnavailableError: If the request fails after retries
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
                data = await self._get_json(
                    client, "/sets", {"orderBy": "-releaseDate", "pageSize": count}
                )
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError("card catalog", detail="latest sets") from e

        sets: list[dict[str, Any]] = data.get("data") or []
        return sets

    async def iter_all_card_pages(
        self, page_delay: float = _INGEST_PAGE_DELAY
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """
        Yield raw card pages of the whole catalog until an empty page.

        Raises:
            UpstreamUnavailableError: If a page fails after retries
        """
        page = 1
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            while True:
                try:
                    data = await self._get_json(
                        client, "/cards", {"page": page, "pageSize": PAGE_SIZE}
                    )
                except httpx.HTTPError as e:
                    raise UpstreamUnavailableError("card catalog", detail=f"page {page}") from e

                batch = data.get("data") or []
                if not batch:
                    return
                yield batch
                page += 1
                if page_delay:
                    await asyncio.sleep(page_delay)


class PokeApiClient:
    """Async client for Pokémon artwork used by the silhouette game."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @staticmethod
    def pick_artwork(data: dict[str, Any]) -> str | None:
        """Best artwork URL: official artwork, then dream world, then sprite."""
        sprites = data.get("sprites") or {}
        other = sprites.get("other") or {}
        image: str | None = (
            (other.get("official-artwork") or {}).get("front_default")
            or (other.get("dream_world") or {}).get("front_default")
            or sprites.get("front_default")
        )
        return image

    async def random_pokemon(
        self,
        rng: random.Random | None = None,
        attempts: int = 10,
        max_id: int = MAX_POKEMON_ID,
    ) -> tuple[str, str]:
        """
        Pick a random Pokémon that has artwork.

        Missing entries and network errors move on to another id.

        Returns:
            Tuple of (name, image_url)

        Raises:
            UpstreamUnavailableError: If no attempt produced usable artwork
        """
        rng = rng or random.Random()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for _ in range(attempts):
                pokemon_id = rng.randint(1, max_id)
                try:
                    response = await client.get(f"{self.base_url}/pokemon/{pokemon_id}")
                    response.raise_for_status()
                    data = response.json()
                except httpx.HTTPError as e:
                    logger.debug("PokeAPI lookup failed for %s: %s", pokemon_id, e)
                    continue

                image = self.pick_artwork(data)
                name = data.get("name")
                if image and name:
                    return str(name), image

        raise UpstreamUnavailableError("PokeAPI", detail="No suitable Pokémon found")
