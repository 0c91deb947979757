import random
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokepacks.api.dependencies import (
    get_card_pools,
    get_catalog_client,
    get_challenges,
    get_pack_catalog,
    get_pokeapi,
    get_rng,
)
from pokepacks.db.database import get_session
from pokepacks.main import app
from pokepacks.models.card import Card
from pokepacks.models.db import Base
from pokepacks.models.pools import RarityPools, partition_by_rarity
from pokepacks.services.catalog_client import CatalogClient
from pokepacks.services.challenges import ChallengeRegistry
from pokepacks.services.pack_catalog import PackCatalog, builtin_packs

PIKACHU_IMAGE = "https://img.example/pikachu.png"


def make_cards(set_id: str, rarity: str | None, count: int, prefix: str = "") -> list[Card]:
    """Build simple catalog cards for one rarity."""
    tag = prefix or (rarity or "none").lower().replace(" ", "-")
    return [
        Card(
            id=f"{set_id}-{tag}-{i}",
            name=f"{tag} {i}",
            rarity=rarity,
            image_small=f"https://img.example/{set_id}/{tag}-{i}.png",
            image_large=f"https://img.example/{set_id}/{tag}-{i}_hires.png",
            number=str(i),
            set_id=set_id,
            set_name=f"Set {set_id}",
        )
        for i in range(1, count + 1)
    ]


def make_pools(set_id: str = "sv1", common: int = 12, uncommon: int = 6, rare: int = 3) -> RarityPools:
    return partition_by_rarity(
        make_cards(set_id, "Common", common)
        + make_cards(set_id, "Uncommon", uncommon)
        + make_cards(set_id, "Rare Holo", rare)
    )


class StaticPoolProvider:
    """Pool provider that serves fixed pools for any set."""

    def __init__(self, pools: RarityPools | None = None) -> None:
        self.pools = pools
        self.requested: list[str] = []

    async def get_pools(self, set_id: str) -> RarityPools:
        self.requested.append(set_id)
        return self.pools or make_pools(set_id)

    async def warm(self, set_ids, force: bool = False):
        return [
            {"setId": set_id, "ok": True, "counts": (await self.get_pools(set_id)).counts()}
            for set_id in set_ids
        ]


class FakePokeApi:
    """PokeAPI stand-in that always picks the same Pokémon."""

    def __init__(self, name: str = "pikachu", image: str = PIKACHU_IMAGE) -> None:
        self.name = name
        self.image = image

    async def random_pokemon(self, rng=None) -> tuple[str, str]:
        return self.name, self.image


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def pool_provider() -> StaticPoolProvider:
    return StaticPoolProvider()


@pytest.fixture
def challenge_registry() -> ChallengeRegistry:
    return ChallengeRegistry(ttl_seconds=600)


@pytest.fixture
def pack_catalog(tmp_path: Path) -> PackCatalog:
    """A loaded catalog holding the built-in packs."""
    catalog = PackCatalog(
        CatalogClient("https://catalog.test"),
        local_path=tmp_path / "packs.local.json",
        cache_path=tmp_path / "packs.cache.json",
        pack_cost=100,
    )
    catalog.packs = builtin_packs(100)
    catalog.ready = True
    return catalog


@pytest.fixture
def catalog_client() -> CatalogClient:
    return CatalogClient("https://catalog.test")


@pytest.fixture
async def client(
    async_engine,
    pool_provider,
    pack_catalog,
    challenge_registry,
    catalog_client,
    rng,
):
    """Provide an async test client with overridden session and app state."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    pokeapi = FakePokeApi()
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_card_pools] = lambda: pool_provider
    app.dependency_overrides[get_pack_catalog] = lambda: pack_catalog
    app.dependency_overrides[get_challenges] = lambda: challenge_registry
    app.dependency_overrides[get_catalog_client] = lambda: catalog_client
    app.dependency_overrides[get_pokeapi] = lambda: pokeapi
    app.dependency_overrides[get_rng] = lambda: rng

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
