"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from pvnews.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Posts and comments collected from all sources
CREATE TABLE IF NOT EXISTS items (
    id              TEXT PRIMARY KEY,       -- <prefix>_<native id>
    source          TEXT NOT NULL CHECK (source IN (
                        'forum_post', 'forum_comment', 'microblog_post'
                    )),
    title           TEXT,
    body            TEXT,
    url             TEXT,
    author          TEXT,
    score           INTEGER NOT NULL DEFAULT 0,
    origin_subforum TEXT,
    permalink       TEXT,
    metrics         TEXT,                   -- JSON object
    created_at      TEXT NOT NULL,
    fetched_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_items_source ON items(source);
CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at DESC);

-- Poll cycle history
CREATE TABLE IF NOT EXISTS pipeline_runs (
    id          TEXT PRIMARY KEY,
    run_type    TEXT NOT NULL CHECK (run_type IN ('poll_cycle')),
    started_at  TEXT NOT NULL,
    finished_at TEXT NOT NULL,
    status      TEXT NOT NULL CHECK (status IN ('success', 'partial', 'error')),
    result      TEXT NOT NULL,   -- JSON
    error       TEXT
);

CREATE INDEX IF NOT EXISTS idx_pipeline_runs_started_at ON pipeline_runs(started_at);

-- Per-adapter fetch health
CREATE TABLE IF NOT EXISTS source_health (
    adapter_name            TEXT PRIMARY KEY,
    consecutive_failures    INTEGER NOT NULL DEFAULT 0,
    last_error              TEXT,
    last_failed_at          TEXT,
    last_succeeded_at       TEXT
);
"""


def init_db(database_path: str) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
