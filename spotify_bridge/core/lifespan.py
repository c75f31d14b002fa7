"""Application lifespan management."""

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from spotify_bridge import BRIDGE_VERSION
from spotify_bridge.bridge import SpotifyBridge
from spotify_bridge.config import Settings, get_settings
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.middleware.logging_middleware import log_request, log_response

logger = get_logger(__name__)


def create_http_client() -> httpx.AsyncClient:
    """Shared client for all Spotify traffic, with granular timeouts."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=5.0,  # Connection establishment timeout
            read=10.0,  # Read response timeout
            write=5.0,  # Write operation timeout
            pool=5.0,  # Pool checkout timeout
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        event_hooks=event_hooks,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - startup and shutdown events.

    Shutdown stops the poll loop and any ramp and ends subscriber streams
    before the HTTP client closes, so no timer fires after shutdown.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.startup_time = time.time()
    app.state.request_count = 0

    log_with_context(
        logger,
        "info",
        "Starting spotify-controller-bridge",
        version=BRIDGE_VERSION,
        port=settings.api_port,
        control_enabled=settings.allow_control,
        event_type="app_startup",
    )

    client: httpx.AsyncClient = getattr(app.state, "http_client", None) or create_http_client()
    app.state.http_client = client

    bridge: SpotifyBridge = getattr(app.state, "bridge", None) or SpotifyBridge.from_settings(settings, client)
    app.state.bridge = bridge
    await bridge.initialize()
    log_with_context(
        logger,
        "info",
        "Bridge initialized",
        configured=bridge.configured,
        event_type="bridge_ready",
    )

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(
            logger,
            "info",
            "Shutting down spotify-controller-bridge",
            event_type="app_shutdown",
        )
        await bridge.cleanup()
        await client.aclose()
        log_with_context(
            logger,
            "info",
            "HTTP client closed",
            event_type="http_client_cleanup",
        )
