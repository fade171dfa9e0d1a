"""
Main entrypoint for the PlenPilot API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  The ``create_app`` function builds
and configures the app, which is then instantiated at module
import time as ``app``.  Run it with uvicorn, e.g.::

    uvicorn plenpilot_api.app.main:app --reload

or through ``run.py``, which also schedules the daily notification
cleanup.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.logging_config import setup_logging
from .api.v1.router import router as v1_router
from .core.db import init_db
from .core.errors import ServiceError


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Configures logging, mounts the versioned routers, converts
    ``ServiceError`` into HTTP 500 responses carrying the error's
    user‑facing message and applies database migrations on startup.
    """
    setup_logging()

    app = FastAPI(title=settings.project_name, version=settings.api_version)

    app.include_router(v1_router, prefix="/api/v1")

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": exc.message})

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies pending migrations.
        init_db()

    return app


app = create_app()
