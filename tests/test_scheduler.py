"""Tests for pvnews.scheduler — single-flight poll cycles and timer setup."""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from unittest.mock import MagicMock

from apscheduler.triggers.interval import IntervalTrigger

from pvnews.config import Config
from pvnews.jobs import CycleReport, SourceReport
from pvnews.scheduler import IDLE, RUNNING, PollScheduler


def _report(n=1) -> CycleReport:
    return CycleReport(
        id=f"run-{n}",
        started_at="2024-01-01T00:00:00.000+00:00",
        finished_at="2024-01-01T00:00:05.000+00:00",
        sources={"reddit": SourceReport(name="reddit", status="ok", inserted=n)},
    )


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestTriggerNow:
    def test_runs_cycle_and_returns_report(self):
        runner = MagicMock(return_value=_report())
        scheduler = PollScheduler(Config(), runner=runner, scheduler=MagicMock())

        report = scheduler.trigger_now()

        assert report.id == "run-1"
        runner.assert_called_once()
        assert scheduler.state == IDLE

    def test_sequential_triggers_run_fresh_cycles(self):
        runner = MagicMock(side_effect=[_report(1), _report(2)])
        scheduler = PollScheduler(Config(), runner=runner, scheduler=MagicMock())

        assert scheduler.trigger_now().id == "run-1"
        assert scheduler.trigger_now().id == "run-2"
        assert runner.call_count == 2

    def test_concurrent_trigger_waits_for_inflight_cycle(self, caplog):
        caplog.set_level(logging.INFO, logger="pvnews.scheduler")
        release = threading.Event()
        calls = []

        def runner():
            calls.append(1)
            release.wait(timeout=5)
            return _report()

        scheduler = PollScheduler(Config(), runner=runner, scheduler=MagicMock())
        results = []

        def trigger():
            results.append(scheduler.trigger_now())

        first = threading.Thread(target=trigger)
        first.start()
        assert _wait_for(lambda: scheduler.state == RUNNING)

        second = threading.Thread(target=trigger)
        second.start()
        assert _wait_for(lambda: "waiting for its result" in caplog.text)
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(calls) == 1
        assert len(results) == 2
        assert results[0] is results[1]
        assert scheduler.state == IDLE

    def test_store_error_reaches_every_waiter(self, caplog):
        caplog.set_level(logging.INFO, logger="pvnews.scheduler")
        release = threading.Event()

        def runner():
            release.wait(timeout=5)
            raise sqlite3.OperationalError("disk I/O error")

        scheduler = PollScheduler(Config(), runner=runner, scheduler=MagicMock())
        errors = []

        def trigger():
            try:
                scheduler.trigger_now()
            except sqlite3.OperationalError as exc:
                errors.append(exc)

        first = threading.Thread(target=trigger)
        first.start()
        assert _wait_for(lambda: scheduler.state == RUNNING)
        second = threading.Thread(target=trigger)
        second.start()
        assert _wait_for(lambda: "waiting for its result" in caplog.text)
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(errors) == 2
        assert scheduler.state == IDLE
        assert "disk I/O error" in scheduler.status()["last_error"]

    def test_scheduled_cycle_swallows_and_logs_errors(self, caplog):
        runner = MagicMock(side_effect=sqlite3.OperationalError("locked"))
        scheduler = PollScheduler(Config(), runner=runner, scheduler=MagicMock())

        scheduler._scheduled_cycle()

        assert "Scheduled poll cycle failed" in caplog.text
        assert scheduler.state == IDLE


class TestStatus:
    def test_initial_status(self):
        bg = MagicMock()
        bg.running = False
        scheduler = PollScheduler(Config(poll_interval_minutes=15), runner=MagicMock(), scheduler=bg)

        status = scheduler.status()

        assert status["state"] == IDLE
        assert status["poll_interval_minutes"] == 15
        assert status["cycles_completed"] == 0
        assert status["last_report"] is None
        assert status["next_run_at"] is None

    def test_status_after_cycle(self):
        bg = MagicMock()
        bg.running = False
        scheduler = PollScheduler(Config(), runner=MagicMock(return_value=_report(3)), scheduler=bg)

        scheduler.trigger_now()
        status = scheduler.status()

        assert status["cycles_completed"] == 1
        assert status["last_finished_at"] == "2024-01-01T00:00:05.000+00:00"
        assert status["last_report"]["sources"]["reddit"]["inserted"] == 3
        assert status["last_error"] is None

    def test_status_reports_running_during_cycle(self):
        release = threading.Event()

        def runner():
            release.wait(timeout=5)
            return _report()

        bg = MagicMock()
        bg.running = False
        scheduler = PollScheduler(Config(), runner=runner, scheduler=bg)
        worker = threading.Thread(target=scheduler.trigger_now)
        worker.start()
        try:
            assert _wait_for(lambda: scheduler.status()["state"] == RUNNING)
        finally:
            release.set()
            worker.join(timeout=5)

        assert scheduler.status()["state"] == IDLE


class TestStart:
    def test_arms_interval_job_firing_immediately(self):
        bg = MagicMock()
        scheduler = PollScheduler(Config(poll_interval_minutes=15), runner=MagicMock(), scheduler=bg)

        scheduler.start()

        bg.add_job.assert_called_once()
        kwargs = bg.add_job.call_args.kwargs
        assert isinstance(kwargs["trigger"], IntervalTrigger)
        assert kwargs["trigger"].interval.total_seconds() == 15 * 60
        assert kwargs["next_run_time"] is not None
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        bg.start.assert_called_once()

    def test_shutdown_stops_running_scheduler(self):
        bg = MagicMock()
        bg.running = True
        scheduler = PollScheduler(Config(), runner=MagicMock(), scheduler=bg)

        scheduler.shutdown()

        bg.shutdown.assert_called_once_with(wait=False)

    def test_shutdown_noop_when_not_started(self):
        bg = MagicMock()
        bg.running = False
        scheduler = PollScheduler(Config(), runner=MagicMock(), scheduler=bg)

        scheduler.shutdown()

        bg.shutdown.assert_not_called()
