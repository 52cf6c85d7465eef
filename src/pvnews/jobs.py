"""Poll cycle — fetch every source concurrently and store new items."""

from __future__ import annotations

import json
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field

from pvnews.config import Config
from pvnews.ingestion.adapter import SourceAdapter, describe_error
from pvnews.ingestion.normalize import Source, utc_now, validate_raw_item
from pvnews.ingestion.reddit_adapter import RedditAdapter
from pvnews.ingestion.x_adapter import XAdapter
from pvnews.storage.connection import get_connection
from pvnews.storage.items import upsert_item

logger = logging.getLogger(__name__)


@dataclass
class SourceReport:
    """What one adapter contributed to a cycle."""

    name: str
    status: str  # "ok", "partial", "failed" or "skipped"
    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    invalid: int = 0
    inserted_by_source: dict[str, int] = field(default_factory=dict)
    errors: list[dict] = field(default_factory=list)
    skip_reason: str | None = None


@dataclass
class CycleReport:
    """Outcome of one poll cycle across all adapters."""

    id: str
    started_at: str
    finished_at: str
    sources: dict[str, SourceReport]

    @property
    def total_inserted(self) -> int:
        return sum(s.inserted for s in self.sources.values())

    @property
    def status(self) -> str:
        """``success``, ``partial`` (some endpoints failed) or ``error`` (nothing fetched)."""
        active = [s for s in self.sources.values() if s.status != "skipped"]
        if active and all(s.status == "failed" for s in active):
            return "error"
        if any(s.status in ("failed", "partial") for s in active):
            return "partial"
        return "success"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "status": self.status,
            "total_inserted": self.total_inserted,
            "sources": {name: asdict(s) for name, s in self.sources.items()},
        }


def build_adapters(config: Config) -> list[SourceAdapter]:
    """Create the configured source adapters."""
    return [
        RedditAdapter(
            primary_subreddit=config.reddit_primary_subreddit,
            subreddits=list(config.reddit_subreddits),
            search_query=config.search_query,
            timeout=config.http_timeout_seconds,
        ),
        XAdapter(
            bearer_token=config.x_bearer_token,
            search_query=config.search_query,
            timeout=config.http_timeout_seconds,
        ),
    ]


def _record_run(database_path: str, report: CycleReport) -> None:
    """Insert a cycle record into the pipeline_runs table."""
    failed = [
        f"{s.name}: " + "; ".join(e["reason"] for e in s.errors)
        for s in report.sources.values()
        if s.errors
    ]
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO pipeline_runs "
            "(id, run_type, started_at, finished_at, status, result, error) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                report.id,
                "poll_cycle",
                report.started_at,
                report.finished_at,
                report.status,
                json.dumps(report.to_dict()),
                " | ".join(failed) or None,
            ),
        )


def _record_source_failure(database_path: str, adapter_name: str, error_msg: str) -> int:
    """Record a failed adapter fetch. Returns updated consecutive_failures count."""
    now = utc_now()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO source_health "
            "(adapter_name, consecutive_failures, last_error, last_failed_at) "
            "VALUES (?, 1, ?, ?) "
            "ON CONFLICT(adapter_name) DO UPDATE SET "
            "consecutive_failures = consecutive_failures + 1, "
            "last_error = excluded.last_error, last_failed_at = excluded.last_failed_at",
            (adapter_name, error_msg, now),
        )
        row = conn.execute(
            "SELECT consecutive_failures FROM source_health WHERE adapter_name = ?",
            (adapter_name,),
        ).fetchone()
    return row["consecutive_failures"] if row else 1


def _record_source_success(database_path: str, adapter_name: str) -> None:
    """Reset the consecutive failure count after a fetch that reached the source."""
    now = utc_now()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO source_health "
            "(adapter_name, consecutive_failures, last_succeeded_at) "
            "VALUES (?, 0, ?) "
            "ON CONFLICT(adapter_name) DO UPDATE SET "
            "consecutive_failures = 0, last_succeeded_at = excluded.last_succeeded_at",
            (adapter_name, now),
        )


def _run_adapter(adapter: SourceAdapter, database_path: str) -> SourceReport:
    """Fetch from one adapter and upsert everything it returned, in order.

    Fetch problems end up in the report. Store errors propagate.
    """
    try:
        fetched = adapter.fetch()
    except Exception as exc:
        logger.exception("Adapter '%s' fetch failed", adapter.name)
        reason = describe_error(exc)
        report = SourceReport(
            name=adapter.name,
            status="failed",
            errors=[{"endpoint": "*", "reason": reason}],
        )
        consecutive = _record_source_failure(database_path, adapter.name, reason)
        logger.warning("Adapter '%s' has failed %d cycle(s) in a row", adapter.name, consecutive)
        return report

    report = SourceReport(
        name=adapter.name,
        status=fetched.status,
        fetched=len(fetched.items),
        errors=[asdict(e) for e in fetched.errors],
        skip_reason=fetched.skip_reason,
    )

    for raw in fetched.items:
        errors = validate_raw_item(raw)
        if errors:
            logger.warning("Dropping invalid item %s: %s", raw.id, "; ".join(errors))
            report.invalid += 1
            continue
        if upsert_item(database_path, raw):
            report.inserted += 1
            key = Source(raw.source).value
            report.inserted_by_source[key] = report.inserted_by_source.get(key, 0) + 1
        else:
            report.duplicates += 1

    if report.status == "failed":
        consecutive = _record_source_failure(
            database_path, adapter.name, "; ".join(e["reason"] for e in report.errors)
        )
        logger.warning("Adapter '%s' has failed %d cycle(s) in a row", adapter.name, consecutive)
    else:
        _record_source_success(database_path, adapter.name)

    logger.info(
        "Adapter '%s' %s: %d fetched, %d new, %d duplicates",
        adapter.name, report.status, report.fetched, report.inserted, report.duplicates,
    )
    return report


def run_cycle(config: Config, adapters: list[SourceAdapter] | None = None) -> CycleReport:
    """Run one poll cycle and return its report.

    Adapters run concurrently and the cycle waits for all of them; one
    adapter failing never cancels another. Store errors are re-raised once
    every adapter has finished.
    """
    if adapters is None:
        adapters = build_adapters(config)

    started_at = utc_now()
    logger.info("Poll cycle starting with %d adapter(s)", len(adapters))

    with ThreadPoolExecutor(
        max_workers=max(1, len(adapters)), thread_name_prefix="poll"
    ) as executor:
        futures = [
            executor.submit(_run_adapter, adapter, config.database_path)
            for adapter in adapters
        ]
        wait(futures)

    sources: dict[str, SourceReport] = {}
    for future in futures:
        report = future.result()
        sources[report.name] = report

    report = CycleReport(
        id=str(uuid.uuid4()),
        started_at=started_at,
        finished_at=utc_now(),
        sources=sources,
    )
    _record_run(config.database_path, report)
    logger.info(
        "Poll cycle complete (%s): %d new item(s)", report.status, report.total_inserted
    )
    return report
