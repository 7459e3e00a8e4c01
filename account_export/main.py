"""
FastAPI application entrypoint for the account data export service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from account_export.api.routes import router as api_router
from account_export.core.config import get_settings
from account_export.core.logging import configure_logging
from account_export.dependencies import get_export_coordinator


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    # Only tear down a coordinator that was actually created.
    if get_export_coordinator.cache_info().currsize:
        await get_export_coordinator().aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Account Data Export",
        version="0.1.0",
        description="Download, cache and export the account data report.",
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
