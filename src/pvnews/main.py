"""Application entry point — runs the poll scheduler and web server in one process."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn

from pvnews.config import load_config
from pvnews.scheduler import PollScheduler
from pvnews.storage import init_db
from pvnews.web.app import create_app

logger = logging.getLogger("pvnews")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "thread": "%(threadName)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s (%(threadName)s): %(message)s"
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))


def main() -> None:
    """Load config, set up logging, and start scheduler + web server."""
    config = load_config()

    _setup_logging(config.log_level, config.log_format)

    logger.info(
        "PV News starting (env=%s, db=%s, interval=%dm, x=%s)",
        config.app_env,
        config.database_path,
        config.poll_interval_minutes,
        "enabled" if config.x_bearer_token else "disabled",
    )

    init_db(config.database_path)

    scheduler = PollScheduler(config)

    @asynccontextmanager
    async def lifespan(app):
        logger.info("Scheduler starting")
        # First cycle runs right away on the scheduler's thread, so the
        # web server is available immediately.
        scheduler.start()
        yield
        logger.info("Scheduler shutting down")
        scheduler.shutdown()

    app = create_app(config, scheduler=scheduler, lifespan=lifespan)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
