"""Storage layer — SQLite database access and schema management."""

from pvnews.storage.connection import get_connection, get_readonly_connection
from pvnews.storage.items import count_by_source, list_items, upsert_item
from pvnews.storage.schema import init_db

__all__ = [
    "count_by_source",
    "get_connection",
    "get_readonly_connection",
    "init_db",
    "list_items",
    "upsert_item",
]
