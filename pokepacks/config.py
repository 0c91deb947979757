from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PokePacks"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./pokepacks.db"

    frontend_url: str = "http://localhost:5173"

    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    pokemon_tcg_api_key: str = ""
    pokeapi_url: str = "https://pokeapi.co/api/v2"

    # Empty means admin routes are not configured and answer 500
    admin_token: str = ""

    pack_cost: int = 100
    starting_coins: int = 1000

    card_pool_ttl_seconds: float = 12 * 60 * 60
    cache_dir: Path = Path("cache")
    packs_local_path: Path = Path("packs.local.json")
    packs_cache_path: Path = Path("packs.cache.json")

    catalog_timeout_seconds: float = 30.0

    # When False, an unreachable catalog with no cache surfaces as 502
    # instead of serving the synthetic sample pool
    catalog_allow_fallback: bool = True

    silhouette_ttl_seconds: float = 10 * 60


settings = Settings()


# =============================================================================
# PACK DEFAULTS
# =============================================================================

# Set opened when a request omits setId
DEFAULT_SET_ID = "swsh1"

# Set used for a free spin pack when no pack list is loaded
FREE_PACK_FALLBACK_SET_ID = "sv1"

# Number of most recent sets offered in the store
LATEST_SETS_COUNT = 16
