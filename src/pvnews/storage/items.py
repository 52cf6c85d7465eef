"""Item store: idempotent insert and most-recent-first reads."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pvnews.ingestion.normalize import Source, utc_now
from pvnews.storage.connection import get_connection, get_readonly_connection

if TYPE_CHECKING:
    from pvnews.ingestion.normalize import RawItem

logger = logging.getLogger(__name__)

SOURCE_LIMIT = 200
ALL_LIMIT = 400

_COLUMNS = (
    "id, source, title, body, url, author, score, origin_subforum, "
    "permalink, metrics, created_at, fetched_at"
)


def upsert_item(database_path: str, item: RawItem) -> bool:
    """Insert an item unless its ID is already stored.

    Returns True when a row was written, False for a duplicate ID. The first
    write wins; later writes with the same ID are dropped, never merged.
    """
    metrics = json.dumps(item.metrics) if item.metrics is not None else None
    with get_connection(database_path) as conn:
        cursor = conn.execute(
            f"INSERT OR IGNORE INTO items ({_COLUMNS}) "  # noqa: S608
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                item.id,
                Source(item.source).value,
                item.title,
                item.body,
                item.url,
                item.author,
                item.score,
                item.origin_subforum,
                item.permalink,
                metrics,
                item.created_at,
                utc_now(),
            ),
        )
        inserted = cursor.rowcount == 1
    if inserted:
        logger.debug("Stored item %s", item.id)
    return inserted


def _row_to_dict(row) -> dict:
    data = dict(row)
    data["metrics"] = json.loads(data["metrics"]) if data["metrics"] else None
    return data


def list_items(database_path: str, source: Source | str | None = None) -> list[dict]:
    """Return stored items, newest ``created_at`` first.

    With a source the result is capped at SOURCE_LIMIT rows, without one at
    ALL_LIMIT rows.
    """
    with get_readonly_connection(database_path) as conn:
        if source is None:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM items "  # noqa: S608
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (ALL_LIMIT,),
            ).fetchall()
        else:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM items WHERE source = ? "  # noqa: S608
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (Source(source).value, SOURCE_LIMIT),
            ).fetchall()
    return [_row_to_dict(r) for r in rows]


def get_item(database_path: str, item_id: str) -> dict | None:
    with get_readonly_connection(database_path) as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM items WHERE id = ?",  # noqa: S608
            (item_id,),
        ).fetchone()
    return _row_to_dict(row) if row else None


def count_by_source(database_path: str) -> dict[str, int]:
    """Return the number of stored items per source."""
    with get_readonly_connection(database_path) as conn:
        rows = conn.execute(
            "SELECT source, COUNT(*) AS cnt FROM items GROUP BY source"
        ).fetchall()
    return {r["source"]: r["cnt"] for r in rows}
