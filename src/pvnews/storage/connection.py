"""SQLite connection management."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator

_BUSY_TIMEOUT_MS = 5000


@contextmanager
def get_connection(database_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a SQLite connection with WAL mode and a busy timeout.

    Commits on clean exit, rolls back on exception, and always closes.
    Concurrent writers wait on the database lock for up to the busy timeout
    instead of failing immediately.
    """
    conn = sqlite3.connect(database_path, timeout=_BUSY_TIMEOUT_MS / 1000)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={_BUSY_TIMEOUT_MS}")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def get_readonly_connection(database_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a read-only SQLite connection.

    Uses URI mode to enforce read-only access. Sets query_only pragma
    as an additional safeguard. Yields the connection and closes on exit.
    """
    conn = sqlite3.connect(f"file:{database_path}?mode=ro", uri=True)
    conn.execute("PRAGMA query_only=ON")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
