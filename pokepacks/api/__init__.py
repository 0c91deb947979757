from pokepacks.api.admin import router as admin_router
from pokepacks.api.collections import router as collections_router
from pokepacks.api.games import router as games_router
from pokepacks.api.health import router as health_router
from pokepacks.api.packs import router as packs_router
from pokepacks.api.users import router as users_router

__all__ = [
    "admin_router",
    "collections_router",
    "games_router",
    "health_router",
    "packs_router",
    "users_router",
]
