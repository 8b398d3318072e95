"""
FastAPI application entrypoint for the Instagram gallery proxy.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import get_credential_store, get_token_refresh_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the access token, then keep it refreshed while the app runs."""
    settings = get_settings()

    # Raises ConfigurationError, aborting startup, when no token is available.
    get_credential_store().load()

    scheduler = get_token_refresh_scheduler()
    scheduler.start()

    base_url = settings.advertised_base_url
    logger.info("Server running on port %s", settings.port)
    logger.info("Instagram API: %s/api/instagram", base_url)
    logger.info("Health Check:  %s/api/health", base_url)
    logger.info("Clear Cache:   POST %s/api/instagram/clear-cache", base_url)

    try:
        yield
    finally:
        await scheduler.stop()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Instagram Gallery Proxy",
        version="0.1.0",
        description="Cached Instagram Graph API feed for the business website.",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


__all__ = ["app", "create_app", "run"]
