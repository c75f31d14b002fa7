"""One-time Spotify authorization to obtain a refresh token."""

import html
import secrets
import time
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from spotify_bridge.config import Settings
from spotify_bridge.dependencies import get_http_client, get_settings
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.services.spotify_service import SPOTIFY_TOKEN_URL
from spotify_bridge.utils.env_updater import get_env_path, update_env_file

router = APIRouter()
logger = get_logger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"

# state -> timestamp; abandoned flows expire after 10 minutes
_oauth_states: dict[str, float] = {}
OAUTH_STATE_TTL_SECONDS = 600

# Spotify OAuth scopes needed for playback state and control
SPOTIFY_SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
]

_SUCCESS_PAGE = """<!DOCTYPE html>
<html><head><title>Spotify connected</title></head>
<body>
<h1>Spotify connected</h1>
<p>The refresh token was saved to <code>.env</code>. Restart the bridge to start controlling playback.</p>
</body></html>
"""

_MANUAL_PAGE = """<!DOCTYPE html>
<html><head><title>Spotify connected</title></head>
<body>
<h1>Spotify connected</h1>
<p>The refresh token could not be saved automatically: {error}</p>
<p>Add this line to your <code>.env</code> file and restart the bridge:</p>
<pre>SPOTIFY_REFRESH_TOKEN={token}</pre>
</body></html>
"""


def _cleanup_expired_oauth_states() -> None:
    """Remove expired OAuth states to prevent memory leaks."""
    current_time = time.time()
    expired_states = [
        state for state, timestamp in _oauth_states.items() if current_time - timestamp > OAUTH_STATE_TTL_SECONDS
    ]
    for state in expired_states:
        _oauth_states.pop(state, None)


@router.get("/login")
async def auth_login(settings: Settings = Depends(get_settings)):
    """Redirect to the Spotify consent page."""
    if not settings.spotify_client_id:
        raise HTTPException(status_code=503, detail="SPOTIFY_CLIENT_ID is not configured")

    _cleanup_expired_oauth_states()

    # random state for CSRF protection
    state = secrets.token_urlsafe(32)
    _oauth_states[state] = time.time()

    params = {
        "client_id": settings.spotify_client_id,
        "response_type": "code",
        "redirect_uri": settings.spotify_redirect_uri,
        "state": state,
        "scope": " ".join(SPOTIFY_SCOPES),
        "show_dialog": "false",
    }
    return RedirectResponse(url=f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params)}")


@router.get("/callback", response_class=HTMLResponse)
async def auth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """Exchange the authorization code and persist the refresh token."""
    if error:
        raise HTTPException(status_code=400, detail=f"Spotify auth failed: {error}")

    _cleanup_expired_oauth_states()
    if not state or state not in _oauth_states:
        raise HTTPException(status_code=400, detail="Invalid state parameter")
    _oauth_states.pop(state, None)

    if not code:
        raise HTTPException(status_code=400, detail="No authorization code received")

    try:
        response = await client.post(
            SPOTIFY_TOKEN_URL,
            auth=(settings.spotify_client_id, settings.spotify_client_secret),
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.spotify_redirect_uri,
            },
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        log_with_context(logger, "error", "Token exchange failed", error=str(e), event_type="spotify_auth_failed")
        raise HTTPException(status_code=502, detail=f"Token exchange failed: {e}") from e

    refresh_token = data.get("refresh_token")
    if not refresh_token:
        raise HTTPException(status_code=502, detail="No refresh token received")

    try:
        update_env_file(get_env_path(), "SPOTIFY_REFRESH_TOKEN", refresh_token)
    except (OSError, ValueError) as e:
        log_with_context(
            logger,
            "error",
            "Failed to save refresh token to .env",
            error=str(e),
            event_type="env_update_failed",
        )
        return HTMLResponse(_MANUAL_PAGE.format(error=html.escape(str(e)), token=html.escape(refresh_token)))

    log_with_context(logger, "info", "Spotify refresh token saved to .env", event_type="spotify_auth_success")
    return HTMLResponse(_SUCCESS_PAGE)
