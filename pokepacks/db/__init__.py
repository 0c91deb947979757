from pokepacks.db.database import get_session, init_db
from pokepacks.db.operations import (
    append_collection_entries,
    create_user,
    entry_from_card,
    get_or_create_user,
    get_user_by_id,
    get_user_by_username,
    list_collection,
)

__all__ = [
    "append_collection_entries",
    "create_user",
    "entry_from_card",
    "get_or_create_user",
    "get_session",
    "get_user_by_id",
    "get_user_by_username",
    "init_db",
    "list_collection",
]
