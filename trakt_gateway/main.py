"""
FastAPI application entrypoint for the Trakt credential gateway.
"""

from __future__ import annotations

from fastapi import FastAPI

from trakt_gateway import __version__
from trakt_gateway.api.routes import router as api_router
from trakt_gateway.core.config import get_settings
from trakt_gateway.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Trakt Credential Gateway",
        version=__version__,
        description="Per-tenant Trakt OAuth authorization and token lifecycle API.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
