"""FastAPI dependencies for dependency injection."""

import httpx
from fastapi import Request
from starlette.requests import HTTPConnection

from spotify_bridge.bridge import SpotifyBridge
from spotify_bridge.config import Settings
from spotify_bridge.config import get_settings as get_default_settings


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Get the shared HTTP client from app state.

    Raises:
        RuntimeError: If HTTP client is not initialized.
    """
    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)

    if client is None:
        raise RuntimeError("HTTP client not initialized. This should never happen.")

    return client


async def get_bridge(connection: HTTPConnection) -> SpotifyBridge:
    """
    Get the bridge instance from app state.

    Works for both HTTP requests and WebSocket connections.

    Raises:
        RuntimeError: If the bridge is not initialized.
    """
    bridge: SpotifyBridge | None = getattr(connection.app.state, "bridge", None)

    if bridge is None:
        raise RuntimeError("Bridge not initialized.")

    return bridge


def get_settings(connection: HTTPConnection) -> Settings:
    """Settings the app was created with, falling back to the process-wide ones."""
    settings: Settings | None = getattr(connection.app.state, "settings", None)
    return settings if settings is not None else get_default_settings()
