"""Normalized item shape shared by all adapters, plus validation helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone


class Source(str, enum.Enum):
    """Kind of record an item was collected from."""

    FORUM_POST = "forum_post"
    FORUM_COMMENT = "forum_comment"
    MICROBLOG_POST = "microblog_post"


# Prefix prepended to the platform's native ID. Posts and comments on the
# forum share one numeric ID space, so they need distinct prefixes.
ID_PREFIXES: dict[Source, str] = {
    Source.FORUM_POST: "reddit",
    Source.FORUM_COMMENT: "reddit_comment",
    Source.MICROBLOG_POST: "x",
}


def make_item_id(source: Source, native_id: str) -> str:
    """Build the globally unique item ID for a native platform ID."""
    native_id = str(native_id).strip()
    if not native_id:
        raise ValueError("native_id must be non-empty")
    return f"{ID_PREFIXES[source]}_{native_id}"


def format_timestamp(dt: datetime) -> str:
    """Render a datetime as a fixed-width UTC ISO 8601 string.

    Every stored timestamp uses the same width and offset, so ordering the
    strings orders the instants. Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def timestamp_from_epoch(seconds: float) -> str:
    return format_timestamp(datetime.fromtimestamp(seconds, tz=timezone.utc))


def utc_now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


@dataclass(frozen=True)
class RawItem:
    """Item emitted by a source adapter, ready for the store."""

    id: str
    source: Source
    created_at: str
    title: str | None = None
    body: str | None = None
    url: str | None = None
    author: str | None = None
    score: int = 0
    origin_subforum: str | None = None
    permalink: str | None = None
    metrics: dict | None = None


def validate_raw_item(raw: RawItem) -> list[str]:
    """Validate a RawItem against the store contract. Returns a list of errors."""
    errors: list[str] = []
    if not raw.id or not raw.id.strip():
        errors.append("id is required and must be non-empty")
    try:
        source = Source(raw.source)
    except ValueError:
        errors.append(f"source '{raw.source}' is not valid")
        source = None
    if source is Source.FORUM_POST and not (raw.title or "").strip():
        errors.append("title is required for forum posts")
    if not raw.created_at:
        errors.append("created_at is required")
    else:
        try:
            datetime.fromisoformat(raw.created_at)
        except ValueError:
            errors.append(f"created_at '{raw.created_at}' is not valid ISO 8601")
    if raw.metrics is not None and not isinstance(raw.metrics, dict):
        errors.append("metrics must be a mapping")
    return errors
