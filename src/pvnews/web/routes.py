"""API route handlers for the PV News web API."""

from __future__ import annotations

import logging
import sqlite3

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from pvnews.ingestion.normalize import Source
from pvnews.storage.connection import get_readonly_connection
from pvnews.storage.items import count_by_source, get_item, list_items
from pvnews.web.models import (
    ItemListResponse,
    ItemOut,
    PipelineRunListResponse,
    RefreshResponse,
    SchedulerStatusResponse,
    SourceHealthResponse,
    StatsResponse,
)
from pvnews.web.queries import list_pipeline_runs, list_source_health

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


def _scheduler(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not running")
    return scheduler


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    database_path = request.app.state.database_path
    try:
        with get_readonly_connection(database_path) as conn:
            conn.execute("SELECT 1 FROM items LIMIT 1")
        return JSONResponse({"status": "healthy", "database": "ok"})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error", "detail": str(exc)},
            status_code=503,
        )


@router.get("/items", response_model=ItemListResponse)
def items(request: Request, source: Source | None = None) -> ItemListResponse:
    """Most recent items, for one source or across all of them."""
    rows = list_items(request.app.state.database_path, source)
    return ItemListResponse(count=len(rows), items=[ItemOut(**r) for r in rows])


@router.get("/items/{item_id}", response_model=ItemOut)
def item_detail(request: Request, item_id: str) -> ItemOut:
    row = get_item(request.app.state.database_path, item_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return ItemOut(**row)


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request) -> StatsResponse:
    counts = count_by_source(request.app.state.database_path)
    return StatsResponse(total_items=sum(counts.values()), by_source=counts)


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request) -> RefreshResponse:
    """Run a poll cycle now and report per-source row counts afterwards."""
    scheduler = _scheduler(request)
    database_path = request.app.state.database_path
    try:
        report = scheduler.trigger_now()
        counts = count_by_source(database_path)
    except (sqlite3.Error, OSError) as exc:
        logger.exception("Refresh failed: store unavailable")
        raise HTTPException(status_code=503, detail=f"Store unavailable: {exc}") from exc

    return RefreshResponse(
        ok=True,
        status=report.status,
        inserted={name: s.inserted for name, s in report.sources.items()},
        counts=counts,
        report=report.to_dict(),
    )


@router.get("/status", response_model=SchedulerStatusResponse)
def status(request: Request) -> SchedulerStatusResponse:
    return SchedulerStatusResponse(**_scheduler(request).status())


@router.get("/runs", response_model=PipelineRunListResponse)
def runs(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
) -> PipelineRunListResponse:
    rows, total = list_pipeline_runs(request.app.state.database_path, limit=limit)
    return PipelineRunListResponse(runs=rows, total=total)


@router.get("/sources/health", response_model=SourceHealthResponse)
def sources_health(request: Request) -> SourceHealthResponse:
    return SourceHealthResponse(sources=list_source_health(request.app.state.database_path))
