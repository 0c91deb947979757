"""Tests for the pack catalog loader."""

import json
import random
from pathlib import Path

import pytest

from pokepacks.models.failure import UpstreamUnavailableError
from pokepacks.services.pack_catalog import PackCatalog


class FakeCatalog:
    def __init__(self, sets: list[dict] | None = None, fail: bool = False) -> None:
        self.sets = sets or []
        self.fail = fail
        self.calls = 0

    async def fetch_latest_sets(self, count: int) -> list[dict]:
        self.calls += 1
        if self.fail:
            raise UpstreamUnavailableError("card catalog", detail="latest sets")
        return self.sets


def make_catalog(client: FakeCatalog, tmp_path: Path) -> PackCatalog:
    return PackCatalog(
        client,
        local_path=tmp_path / "packs.local.json",
        cache_path=tmp_path / "packs.cache.json",
        pack_cost=100,
    )


class TestLoad:
    async def test_not_ready_before_load(self, tmp_path: Path) -> None:
        catalog = make_catalog(FakeCatalog(), tmp_path)

        assert catalog.ready is False
        assert catalog.packs == []

    async def test_local_override_wins(self, tmp_path: Path) -> None:
        (tmp_path / "packs.local.json").write_text(json.dumps([{"id": "base1"}]))
        (tmp_path / "packs.cache.json").write_text(json.dumps([{"id": "sv1"}]))
        client = FakeCatalog([{"id": "sv3"}])
        catalog = make_catalog(client, tmp_path)

        await catalog.load()

        assert catalog.set_ids() == ["base1"]
        assert catalog.ready is True
        assert client.calls == 0

    async def test_cache_file_before_network(self, tmp_path: Path) -> None:
        (tmp_path / "packs.cache.json").write_text(json.dumps([{"id": "sv1"}]))
        client = FakeCatalog([{"id": "sv3"}])
        catalog = make_catalog(client, tmp_path)

        await catalog.load()

        assert catalog.set_ids() == ["sv1"]
        assert client.calls == 0

    async def test_empty_cache_file_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "packs.cache.json").write_text("[]")
        catalog = make_catalog(FakeCatalog([{"id": "sv3", "name": "Obsidian Flames"}]), tmp_path)

        await catalog.load()

        assert catalog.set_ids() == ["sv3"]

    async def test_network_result_written_to_cache(self, tmp_path: Path) -> None:
        """Live sets become {id, name, images, cost} entries and are cached."""
        client = FakeCatalog(
            [{"id": "sv3", "name": "Obsidian Flames", "images": {"logo": "l.png"}}, {"name": "x"}]
        )
        catalog = make_catalog(client, tmp_path)

        packs = await catalog.load()

        assert packs == [
            {"id": "sv3", "name": "Obsidian Flames", "images": {"logo": "l.png"}, "cost": 100}
        ]
        cached = json.loads((tmp_path / "packs.cache.json").read_text())
        assert cached == packs

    async def test_builtin_list_when_offline(self, tmp_path: Path) -> None:
        catalog = make_catalog(FakeCatalog(fail=True), tmp_path)

        await catalog.load()

        assert catalog.set_ids() == ["sv1", "sv2", "swsh12pt5", "swsh12"]
        assert all(p["cost"] == 100 for p in catalog.packs)
        assert catalog.ready is True


class TestRandomSetId:
    async def test_chooses_from_loaded_packs(self, tmp_path: Path) -> None:
        catalog = make_catalog(FakeCatalog([{"id": "a"}, {"id": "b"}]), tmp_path)
        await catalog.load()

        rng = random.Random(0)
        picks = {catalog.random_set_id(rng) for _ in range(50)}

        assert picks == {"a", "b"}

    @pytest.mark.parametrize("rng", [None, random.Random(1)])
    def test_empty_list_uses_fallback_set(self, tmp_path: Path, rng) -> None:
        catalog = make_catalog(FakeCatalog(), tmp_path)

        assert catalog.random_set_id(rng) == "sv1"
