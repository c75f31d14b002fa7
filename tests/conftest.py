"""Pytest configuration and shared fixtures."""

import asyncio
import copy
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from spotify_bridge.bridge import SpotifyBridge, normalize
from spotify_bridge.config import Settings
from spotify_bridge.core.app_factory import create_app

PLAYBACK_RESPONSE: dict[str, Any] = {
    "device": {
        "id": "device-123",
        "name": "Studio",
        "type": "Speaker",
        "is_active": True,
        "volume_percent": 60,
    },
    "shuffle_state": False,
    "repeat_state": "off",
    "progress_ms": 125000,
    "is_playing": True,
    "item": {
        "type": "track",
        "name": "Bohemian Rhapsody",
        "uri": "spotify:track:4u7EnebtmKWzUH433cf5Qv",
        "duration_ms": 354000,
        "artists": [{"name": "Queen"}],
        "album": {
            "name": "A Night at the Opera",
            "images": [
                {"url": "https://i.scdn.co/image/large", "width": 640},
                {"url": "https://i.scdn.co/image/small", "width": 64},
            ],
        },
    },
}


class LogicalClock:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self):
        self.sleeps: list[float] = []

    @property
    def elapsed(self) -> float:
        return sum(self.sleeps)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        # yield so other tasks get a turn
        await asyncio.sleep(0)


@pytest.fixture
def playback_factory():
    """Build raw ``GET /me/player`` bodies with selected fields overridden."""

    def factory(volume: int | None = 60, **overrides: Any) -> dict[str, Any]:
        raw = copy.deepcopy(PLAYBACK_RESPONSE)
        raw["device"]["volume_percent"] = volume
        raw.update(overrides)
        return raw

    return factory


@pytest.fixture
def playback_response(playback_factory):
    """Raw playback snapshot of a playing track at volume 60."""
    return playback_factory()


@pytest.fixture
def payload_factory(playback_factory):
    """Build normalized payloads, e.g. to seed the last broadcast state."""

    def factory(volume: int = 60, **overrides: Any):
        return normalize(playback_factory(volume=volume, **overrides))

    return factory


@pytest.fixture
def clock():
    return LogicalClock()


@pytest.fixture
def mock_upstream(playback_response):
    """Mock Spotify client; every call succeeds."""
    upstream = AsyncMock()
    upstream.device_id = None
    upstream.get_playback_state = AsyncMock(return_value=playback_response)
    upstream.get_devices = AsyncMock(return_value=[])
    return upstream


@pytest.fixture
def bridge(mock_upstream, clock):
    """Configured bridge with control enabled and a logical clock."""
    return SpotifyBridge(mock_upstream, control_enabled=True, sleep=clock.sleep)


@pytest.fixture
def disabled_bridge(mock_upstream, clock):
    """Configured bridge with control disabled."""
    return SpotifyBridge(mock_upstream, control_enabled=False, sleep=clock.sleep)


@pytest.fixture
def unconfigured_bridge(clock):
    """Bridge without Spotify credentials."""
    return SpotifyBridge(None, sleep=clock.sleep)


@pytest.fixture
def mock_settings():
    """Settings with test values, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        api_host="127.0.0.1",
        api_port=8801,
        poll_interval_ms=1000,
        allow_control=True,
        spotify_client_id="test-spotify-client-id",
        spotify_client_secret="test-spotify-client-secret",
        spotify_refresh_token="test-refresh-token",
        spotify_redirect_uri="http://localhost:8801/auth/callback",
    )


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for routes that call Spotify directly."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get = AsyncMock()
    mock_client.post = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def make_client(mock_settings, mock_http_client, mock_upstream, playback_response):
    """Start the app around a prepared bridge and yield a TestClient.

    The bridge polls on a long real interval; its last payload is seeded with
    the mocked snapshot so the startup poll broadcasts nothing new.
    """
    clients = []

    def factory(upstream=mock_upstream, control_enabled=True, seed_state=True) -> TestClient:
        bridge = SpotifyBridge(upstream, control_enabled=control_enabled, poll_interval_ms=60_000)
        if seed_state and upstream is not None:
            bridge.context.last_payload = normalize(playback_response)
        app = create_app(mock_settings)
        app.state.http_client = mock_http_client
        app.state.bridge = bridge
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        # one round trip lets the startup poll finish before the test runs
        client.get("/health")
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def test_client(make_client):
    """TestClient for a configured bridge with control enabled."""
    return make_client()
