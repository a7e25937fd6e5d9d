"""
FastAPI app assembly.

The persistence core is exposed only through a health probe and the error
translation layer; resource routes are mounted by the surrounding
application through ``deps.get_repositories``.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI

from minitracker import __version__
from minitracker.api.deps import get_services
from minitracker.api.errors import register_exception_handlers
from minitracker.bootstrap import TrackerServices, bootstrap
from minitracker.db.migrate import current_version, head_version

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(services: Optional[TrackerServices] = None) -> FastAPI:
    """Build the app; without ``services`` they are bootstrapped from the environment at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services if services is not None else bootstrap()
        logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)
        try:
            yield
        finally:
            if owned:
                app.state.services.close()

    app = FastAPI(
        title="Miniature Tracker Service",
        description="Persistence and photo storage for miniature painting projects.",
        version=__version__,
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health")
    def health_check(services: TrackerServices = Depends(get_services)):
        services.database.health_check()
        schema_version = current_version(services.database)
        return {
            "status": "ok",
            "service": "miniature-tracker-service",
            "database": services.database.dialect_name,
            "schema_version": schema_version,
            "schema_current": schema_version == head_version(),
            "storage": services.storage.backend_name,
        }

    return app


app = create_app()
