"""Integration tests for health, debug and Spotify authorization routes."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from spotify_bridge.routers import auth_router
from spotify_bridge.services.spotify_service import SPOTIFY_TOKEN_URL


def test_health(test_client):
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_readiness_when_polling(test_client):
    response = test_client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"spotify_configured": "ok", "poll_loop": "running", "last_poll": "ok"}


def test_readiness_unconfigured(make_client):
    response = make_client(upstream=None).get("/health/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["spotify_configured"] == "not_configured"


def test_debug_info(test_client):
    """Test debug output shows bridge state and hides secrets."""
    response = test_client.get("/debug")

    assert response.status_code == 200
    data = response.json()
    assert data["state"]["configured"] is True
    assert data["state"]["ramping"] is False
    assert data["state"]["has_state"] is True
    assert data["state"]["consecutive_poll_failures"] == 0
    assert data["config"]["spotify_credentials"] == "present"
    assert data["system"]["total_requests"] >= 1
    assert "test-spotify-client-secret" not in response.text
    assert "test-refresh-token" not in response.text


@pytest.fixture(autouse=True)
def clear_oauth_states():
    auth_router._oauth_states.clear()
    yield
    auth_router._oauth_states.clear()


def login_state(client) -> str:
    response = client.get("/auth/login", follow_redirects=False)
    location = urlparse(response.headers["location"])
    return parse_qs(location.query)["state"][0]


def test_auth_login_redirect(test_client):
    response = test_client.get("/auth/login", follow_redirects=False)

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.spotify.com"
    query = parse_qs(location.query)
    assert query["client_id"] == ["test-spotify-client-id"]
    assert query["redirect_uri"] == ["http://localhost:8801/auth/callback"]
    assert "user-modify-playback-state" in query["scope"][0]
    assert query["state"][0] in auth_router._oauth_states


def test_auth_callback_rejects_unknown_state(test_client):
    response = test_client.get("/auth/callback", params={"code": "abc", "state": "forged"})

    assert response.status_code == 400


def test_auth_callback_reports_spotify_error(test_client):
    response = test_client.get("/auth/callback", params={"error": "access_denied"})

    assert response.status_code == 400
    assert "access_denied" in response.text


def test_auth_callback_saves_refresh_token(test_client, mock_http_client, monkeypatch, tmp_path):
    """Test the code exchange persists the refresh token to .env."""
    env_path = tmp_path / ".env"
    env_path.write_text("SPOTIFY_CLIENT_ID=test-spotify-client-id\n")
    monkeypatch.setattr(auth_router, "get_env_path", lambda: env_path)
    mock_http_client.post.return_value = httpx.Response(
        200,
        json={"access_token": "access", "refresh_token": "fresh-refresh-token", "expires_in": 3600},
        request=httpx.Request("POST", SPOTIFY_TOKEN_URL),
    )
    state = login_state(test_client)

    response = test_client.get("/auth/callback", params={"code": "auth-code", "state": state})

    assert response.status_code == 200
    assert "saved" in response.text
    assert "SPOTIFY_REFRESH_TOKEN=fresh-refresh-token" in env_path.read_text().splitlines()
    assert mock_http_client.post.await_args.kwargs["data"]["code"] == "auth-code"
    # a state is single-use
    assert state not in auth_router._oauth_states


def test_auth_callback_manual_fallback(test_client, mock_http_client, monkeypatch):
    """Test the token is shown for manual copying when .env cannot be written."""

    def unwritable(*_args):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(auth_router, "update_env_file", unwritable)
    mock_http_client.post.return_value = httpx.Response(
        200,
        json={"access_token": "access", "refresh_token": "fresh-refresh-token"},
        request=httpx.Request("POST", SPOTIFY_TOKEN_URL),
    )
    state = login_state(test_client)

    response = test_client.get("/auth/callback", params={"code": "auth-code", "state": state})

    assert response.status_code == 200
    assert "SPOTIFY_REFRESH_TOKEN=fresh-refresh-token" in response.text
    assert "read-only file system" in response.text


def test_auth_callback_exchange_failure(test_client, mock_http_client):
    mock_http_client.post.return_value = httpx.Response(
        400,
        json={"error": "invalid_grant"},
        request=httpx.Request("POST", SPOTIFY_TOKEN_URL),
    )
    state = login_state(test_client)

    response = test_client.get("/auth/callback", params={"code": "bad-code", "state": state})

    assert response.status_code == 502
