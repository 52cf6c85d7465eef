"""Read-only query functions for the web API."""

from __future__ import annotations

import json

from pvnews.storage.connection import get_readonly_connection


# ---------------------------------------------------------------------------
# list_pipeline_runs
# ---------------------------------------------------------------------------
def list_pipeline_runs(database_path: str, limit: int = 20) -> tuple[list[dict], int]:
    """Return the most recent poll cycles, newest first, and the total count."""
    with get_readonly_connection(database_path) as conn:
        total = conn.execute("SELECT COUNT(*) FROM pipeline_runs").fetchone()[0]
        rows = conn.execute(
            "SELECT id, run_type, started_at, finished_at, status, result, error "
            "FROM pipeline_runs ORDER BY started_at DESC LIMIT ?",
            (limit,),
        ).fetchall()

    runs = []
    for r in rows:
        run = dict(r)
        run["result"] = json.loads(run["result"])
        runs.append(run)
    return runs, total


# ---------------------------------------------------------------------------
# list_source_health
# ---------------------------------------------------------------------------
def list_source_health(database_path: str) -> list[dict]:
    with get_readonly_connection(database_path) as conn:
        rows = conn.execute(
            "SELECT adapter_name, consecutive_failures, last_error, "
            "last_failed_at, last_succeeded_at "
            "FROM source_health ORDER BY adapter_name"
        ).fetchall()
    return [dict(r) for r in rows]
