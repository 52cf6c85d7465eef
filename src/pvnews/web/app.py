"""FastAPI application factory for the PV News web API."""

from __future__ import annotations

from fastapi import FastAPI

from pvnews.config import Config
from pvnews.web.routes import health_router, router


def create_app(config: Config, scheduler=None, lifespan=None) -> FastAPI:
    """Build and return a configured FastAPI application.

    ``scheduler`` is the PollScheduler used by the refresh and status
    endpoints; the read endpoints only need the database path.
    """
    app = FastAPI(title="PV News", docs_url="/api/docs", lifespan=lifespan)
    app.state.database_path = config.database_path
    app.state.scheduler = scheduler
    app.include_router(health_router)
    app.include_router(router, prefix="/api/v1")
    return app
