"""Periodic and on-demand poll cycles.

Only one cycle runs at a time. A trigger that arrives while a cycle is in
flight, from the timer or from a refresh request, waits for that cycle and
gets its report instead of starting a second one.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pvnews.config import Config
from pvnews.ingestion.normalize import utc_now
from pvnews.jobs import CycleReport, run_cycle

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"

_JOB_ID = "poll_cycle"


class PollScheduler:
    """Runs poll cycles on a fixed interval and on request."""

    def __init__(
        self,
        config: Config,
        runner: Callable[[], CycleReport] | None = None,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._config = config
        self._runner = runner or (lambda: run_cycle(config))
        self._scheduler = scheduler or BackgroundScheduler()
        self._lock = threading.Lock()
        self._inflight: Future | None = None
        self._last_report: CycleReport | None = None
        self._last_started_at: str | None = None
        self._last_finished_at: str | None = None
        self._last_error: str | None = None
        self._cycles_completed = 0

    @property
    def state(self) -> str:
        with self._lock:
            return RUNNING if self._inflight is not None else IDLE

    def start(self) -> None:
        """Arm the interval timer. The first cycle fires immediately."""
        self._scheduler.add_job(
            self._scheduled_cycle,
            trigger=IntervalTrigger(minutes=self._config.poll_interval_minutes),
            id=_JOB_ID,
            name="Poll Reddit + X",
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "Scheduler started; polling every %d minute(s)",
            self._config.poll_interval_minutes,
        )

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def trigger_now(self) -> CycleReport:
        """Run a cycle now and return its report.

        If a cycle is already running, wait for it and return its report.
        Store errors from the cycle are re-raised to every waiting caller.
        """
        with self._lock:
            inflight = self._inflight
            owner = inflight is None
            if owner:
                inflight = self._inflight = Future()
                self._last_started_at = utc_now()

        if not owner:
            logger.info("Cycle already running; waiting for its result")
            return inflight.result()

        try:
            report = self._runner()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
                self._last_finished_at = utc_now()
                self._last_error = f"{type(exc).__name__}: {exc}"
            inflight.set_exception(exc)
            raise

        with self._lock:
            self._inflight = None
            self._last_report = report
            self._last_finished_at = report.finished_at
            self._last_error = None
            self._cycles_completed += 1
        inflight.set_result(report)
        return report

    def _scheduled_cycle(self) -> None:
        try:
            self.trigger_now()
        except Exception:
            logger.exception("Scheduled poll cycle failed; timer stays armed")

    def status(self) -> dict:
        """Snapshot of scheduler state for status reporting."""
        state = self.state
        with self._lock:
            job = self._scheduler.get_job(_JOB_ID) if self._scheduler.running else None
            next_run = job.next_run_time.isoformat() if job and job.next_run_time else None
            return {
                "state": state,
                "poll_interval_minutes": self._config.poll_interval_minutes,
                "cycles_completed": self._cycles_completed,
                "last_started_at": self._last_started_at,
                "last_finished_at": self._last_finished_at,
                "last_error": self._last_error,
                "next_run_at": next_run,
                "last_report": self._last_report.to_dict() if self._last_report else None,
            }
