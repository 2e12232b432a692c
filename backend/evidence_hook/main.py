"""
FastAPI application entry point.

This module creates the FastAPI app instance, mounts the webhook router,
and opens/closes the configured backend on startup/shutdown.

Application structure:
- config.py: Settings and environment variables
- database/: SQLite document store (store backend)
- services/: Resolver, updater, event routing and the two backends
- routers/: API endpoint handlers
- schemas/: Pydantic models for events and records

Run with the evidence-hook console script, or with uvicorn directly:
    uvicorn evidence_hook.main:app
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from evidence_hook.config import Settings, get_settings
from evidence_hook.errors import EvidenceHookError
from evidence_hook.routers import webhooks
from evidence_hook.services.backend import RecordBackend, get_backend
from evidence_hook.utils.helpers import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, backend: Optional[RecordBackend] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (get_settings() otherwise)
        backend: Backend to use (built from settings otherwise)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: check configuration, build the backend and prepare it
        (credential exchange for Wekan, table creation for the store).
        Shutdown: release the backend.
        """
        current = app.state.backend
        if current is None:
            cfg = settings or get_settings()
            cfg.require_backend_settings()
            current = app.state.backend = get_backend(cfg)
        try:
            await current.startup()
            logger.info("%s backend ready", current.name)
            yield
        finally:
            await current.close()

    app = FastAPI(
        title="Evidence Hook",
        description="Applies pipeline events to Wekan cards or store documents",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.backend = backend

    app.include_router(webhooks.router)

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        logger.error("%s %s: %s", request.method, request.url.path, exc.detail)
        return PlainTextResponse(f"{exc.detail}\n", status_code=exc.status_code)

    @app.exception_handler(EvidenceHookError)
    async def hook_error(request: Request, exc: EvidenceHookError) -> PlainTextResponse:
        message = webhooks.describe_error(exc)
        logger.error("%s %s: %s", request.method, request.url.path, message)
        return PlainTextResponse(f"{message}\n", status_code=400)

    @app.get("/healthz")
    async def healthz() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "backend": app.state.backend.name}

    return app


app = create_app()


def run() -> None:
    """Console entry point: configure logging, validate settings, serve."""
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        settings.require_backend_settings()
    except EvidenceHookError as e:
        logger.critical("%s", e)
        sys.exit(1)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
