"""
Main entrypoint for the EventPros API.

This module assembles the FastAPI application, sets up logging,
registers the JSON error handlers and includes the API router.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn eventpros_api.app.main:app --reload

The application title and version are provided via ``Settings`` from
``core.config``.
"""

from fastapi import FastAPI

from .api.router import router as api_router
from .core.config import settings
from .core.db import init_db
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that startup messages are captured.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"data": {"status": "ok", "version": settings.api_version}}

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file on first run and applies pending migrations.
        init_db()

    return app


app = create_app()
