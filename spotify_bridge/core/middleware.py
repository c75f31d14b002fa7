"""Middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotify_bridge.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


def setup_middleware(app: FastAPI) -> None:
    """Configure middleware for the application.

    Controller clients run on arbitrary hosts (button panels, browser UIs), so
    CORS accepts every origin.
    """
    log_with_context(
        logger,
        "info",
        "Configuring CORS middleware for all origins",
        event_type="cors_config",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def count_requests(request, call_next):
        """Count total requests for the debug endpoint."""
        app.state.request_count = getattr(app.state, "request_count", 0) + 1
        return await call_next(request)
