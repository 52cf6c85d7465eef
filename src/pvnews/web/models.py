"""Pydantic v2 response models for the PV News web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------
class ItemOut(BaseModel):
    id: str
    source: str
    title: str | None
    body: str | None
    url: str | None
    author: str | None
    score: int
    origin_subforum: str | None
    permalink: str | None
    metrics: dict[str, Any] | None
    created_at: str
    fetched_at: str


class ItemListResponse(BaseModel):
    count: int
    items: list[ItemOut]


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------
class StatsResponse(BaseModel):
    total_items: int
    by_source: dict[str, int]


# ---------------------------------------------------------------------------
# Refresh / status
# ---------------------------------------------------------------------------
class RefreshResponse(BaseModel):
    ok: bool
    status: str
    inserted: dict[str, int]
    counts: dict[str, int]
    report: dict[str, Any]


class SchedulerStatusResponse(BaseModel):
    state: str
    poll_interval_minutes: int
    cycles_completed: int
    last_started_at: str | None
    last_finished_at: str | None
    last_error: str | None
    next_run_at: str | None
    last_report: dict[str, Any] | None


# ---------------------------------------------------------------------------
# Pipeline runs
# ---------------------------------------------------------------------------
class PipelineRun(BaseModel):
    id: str
    run_type: str
    started_at: str
    finished_at: str
    status: str
    result: dict[str, Any]
    error: str | None


class PipelineRunListResponse(BaseModel):
    runs: list[PipelineRun]
    total: int


# ---------------------------------------------------------------------------
# Source health
# ---------------------------------------------------------------------------
class SourceHealth(BaseModel):
    adapter_name: str
    consecutive_failures: int
    last_error: str | None
    last_failed_at: str | None
    last_succeeded_at: str | None


class SourceHealthResponse(BaseModel):
    sources: list[SourceHealth]
