"""
FastAPI application entrypoint for the policy analysis dashboard.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import get_analysis_orchestrator


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    # Let in-flight image enrichment settle instead of cancelling it mid-request.
    await get_analysis_orchestrator().drain()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Civic Architect",
        version="0.1.0",
        description=(
            "Policy simulation dashboard backed by Gemini structured reasoning, "
            "with background future-state imagery and stakeholder narration."
        ),
        lifespan=_lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
