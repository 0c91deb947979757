import asyncio
import contextlib
import logging
import random
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pokepacks.api import (
    admin_router,
    collections_router,
    games_router,
    health_router,
    packs_router,
    users_router,
)
from pokepacks.config import settings
from pokepacks.db.database import init_db
from pokepacks.models.failure import (
    FailureDetail,
    FailureKind,
    InternalError,
    KnownError,
)
from pokepacks.services.card_pools import CardPoolProvider
from pokepacks.services.catalog_client import CatalogClient, PokeApiClient
from pokepacks.services.challenges import ChallengeRegistry
from pokepacks.services.pack_catalog import PackCatalog

logger = logging.getLogger(__name__)


def configure_state(app: FastAPI) -> None:
    """Attach the per-application caches, clients, and random source."""
    client = CatalogClient(
        settings.pokemon_tcg_api_url,
        api_key=settings.pokemon_tcg_api_key,
        timeout=settings.catalog_timeout_seconds,
    )
    app.state.catalog_client = client
    app.state.card_pools = CardPoolProvider(
        client,
        cache_dir=settings.cache_dir,
        ttl_seconds=settings.card_pool_ttl_seconds,
        allow_fallback=settings.catalog_allow_fallback,
    )
    app.state.pack_catalog = PackCatalog(
        client,
        local_path=settings.packs_local_path,
        cache_path=settings.packs_cache_path,
        pack_cost=settings.pack_cost,
    )
    app.state.challenges = ChallengeRegistry(ttl_seconds=settings.silhouette_ttl_seconds)
    app.state.pokeapi = PokeApiClient(settings.pokeapi_url, timeout=settings.catalog_timeout_seconds)
    app.state.rng = random.Random()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    # Pack list loads in the background; GET /api/packs is empty until it lands
    load_task = asyncio.create_task(app.state.pack_catalog.load())
    yield
    load_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await load_task


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("pokepacks"),
    lifespan=lifespan,
)
configure_state(app)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    body = FailureDetail(
        error=f"Invalid request: {location}" if location else "Invalid request",
        kind=FailureKind.INVALID_INPUT,
        detail=first.get("msg"),
    )
    return JSONResponse(status_code=400, content=body.model_dump(mode="json", exclude_none=True))


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("UNHANDLED_ERROR: %s", type(exc).__name__)
    error = InternalError()
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response().model_dump(mode="json", exclude_none=True),
    )


app.include_router(admin_router)
app.include_router(collections_router)
app.include_router(games_router)
app.include_router(health_router)
app.include_router(packs_router)
app.include_router(users_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
