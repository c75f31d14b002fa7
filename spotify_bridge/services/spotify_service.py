"""Spotify Web API service."""

from typing import Any

import httpx

from spotify_bridge.exceptions import (
    ConfigurationException,
    SpotifyAPIException,
    SpotifyAuthException,
    SpotifyNotAuthenticatedException,
    SpotifyRateLimitException,
)
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.state_managers import SpotifyAuthManager

logger = get_logger(__name__)

SPOTIFY_API_BASE = "https://api.spotify.com/v1"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

# Length of a bare Spotify base-62 id; used to guess album vs playlist contexts
SPOTIFY_ID_LENGTH = 22

REPEAT_MODES = ("off", "track", "context")


def to_track_uri(track_uri_or_id: str | None) -> str | None:
    """Resolve a bare track id or a URI to a Spotify URI.

    Values that already carry a scheme (anything with a ``:``) pass through.
    """
    if not track_uri_or_id:
        return None
    value = str(track_uri_or_id).strip()
    if not value:
        return None
    if ":" in value:
        return value
    return f"spotify:track:{value}"


def to_context_uri(context_uri_or_id: str | None) -> str | None:
    """Resolve a bare context id or a URI to a Spotify context URI.

    A bare 22 character id is assumed to be an album, anything else a
    playlist. This is a heuristic: both kinds share the same id alphabet and
    length, so a bare playlist id is misread as an album. Pass full URIs when
    the kind matters.
    """
    if not context_uri_or_id:
        return None
    value = str(context_uri_or_id).strip()
    if not value:
        return None
    if value.startswith("spotify:"):
        return value
    kind = "album" if len(value) == SPOTIFY_ID_LENGTH else "playlist"
    return f"spotify:{kind}:{value}"


def _error_message(response: httpx.Response) -> str:
    message = f"Spotify API {response.status_code}"
    text = response.text
    try:
        body = response.json()
    except ValueError:
        return f"{message} {text}" if text else message
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"{message}: {error['message']}"
    return f"{message} {text}" if text else message


class SpotifyClient:
    """Spotify Web API client authenticated with a refresh token.

    Player commands target ``device_id`` when one is set. The field is set once
    during startup device resolution and only read afterwards.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        auth_manager: SpotifyAuthManager,
        client_id: str,
        client_secret: str,
        device_id: str | None = None,
    ):
        """Create a client.

        Args:
            client: Shared HTTP client from the application lifespan
            auth_manager: Access/refresh token cache
            client_id: Spotify OAuth client ID
            client_secret: Spotify OAuth client secret
            device_id: Device to target, or None for the active device

        Raises:
            ConfigurationException: If client credentials are missing
        """
        if not client_id or not client_secret:
            raise ConfigurationException("Spotify client id and secret are required")
        self._client = client
        self._auth_manager = auth_manager
        self._client_id = client_id
        self._client_secret = client_secret
        self.device_id = device_id

    async def _get_access_token(self) -> str:
        """Return a cached access token or refresh one.

        Raises:
            SpotifyNotAuthenticatedException: If no refresh token is available
            SpotifyAuthException: If the token endpoint rejects the refresh
        """
        cached_token = await self._auth_manager.get_token()
        if cached_token:
            return cached_token

        refresh_token = self._auth_manager.refresh_token
        if not refresh_token:
            raise SpotifyNotAuthenticatedException("No refresh token available. Please authenticate first.")

        try:
            response = await self._client.post(
                SPOTIFY_TOKEN_URL,
                auth=(self._client_id, self._client_secret),
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            )
            response.raise_for_status()
            data = response.json()
            access_token = data["access_token"]
            expires_in = data.get("expires_in", 3600)
        except httpx.HTTPStatusError as e:
            raise SpotifyAuthException(
                f"Spotify token refresh failed: {e.response.status_code} {e.response.text}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise SpotifyAuthException(f"Spotify token refresh failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise SpotifyAuthException(f"Invalid Spotify token response: {e}") from e

        await self._auth_manager.set_token(access_token, expires_in)
        if data.get("refresh_token"):
            await self._auth_manager.set_refresh_token(data["refresh_token"])

        log_with_context(
            logger,
            "debug",
            "Spotify access token refreshed",
            expires_in=expires_in,
            event_type="spotify_token_refresh",
        )
        return access_token

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        _retried: bool = False,
    ) -> Any:
        """Send an authorized request to the Web API.

        Returns:
            Decoded JSON body, or None for 204/empty responses

        Raises:
            SpotifyAPIException: On transport failure or non-2xx response
            SpotifyRateLimitException: On 429
        """
        token = await self._get_access_token()
        try:
            response = await self._client.request(
                method,
                f"{SPOTIFY_API_BASE}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise SpotifyAPIException(f"Spotify request failed: {e}") from e

        if response.status_code == 204:
            return None

        if response.status_code == 401 and not _retried:
            log_with_context(
                logger,
                "info",
                "Spotify rejected access token, refreshing and retrying once",
                path=path,
                event_type="spotify_token_retry",
            )
            await self._auth_manager.invalidate()
            return await self._request(method, path, params=params, json=json, _retried=True)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise SpotifyRateLimitException(
                _error_message(response),
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.is_error:
            raise SpotifyAPIException(_error_message(response), upstream_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise SpotifyAPIException(
                f"Spotify API invalid JSON ({response.status_code}): {response.text[:200]}",
                upstream_status=response.status_code,
            ) from e

    def _device_params(self, **params: Any) -> dict[str, Any]:
        if self.device_id:
            params["device_id"] = self.device_id
        return params

    async def get_playback_state(self) -> dict[str, Any] | None:
        """Get the raw playback snapshot, or None when nothing is playing anywhere."""
        return await self._request("GET", "/me/player")

    async def get_devices(self) -> list[dict[str, Any]]:
        """List the user's available devices."""
        data = await self._request("GET", "/me/player/devices")
        if not isinstance(data, dict):
            return []
        return data.get("devices") or []

    async def transfer_playback(self, device_id: str, play: bool = False) -> None:
        """Move playback to ``device_id``, optionally starting it."""
        await self._request("PUT", "/me/player", json={"device_ids": [device_id], "play": play})

    async def play(
        self,
        uris: list[str] | None = None,
        context_uri: str | None = None,
        offset: dict[str, Any] | None = None,
    ) -> None:
        """Resume playback, or start the given tracks/context."""
        body: dict[str, Any] = {}
        if uris:
            body["uris"] = uris
        if context_uri:
            body["context_uri"] = context_uri
        if offset:
            body["offset"] = offset
        await self._request("PUT", "/me/player/play", params=self._device_params(), json=body or None)

    async def pause(self) -> None:
        await self._request("PUT", "/me/player/pause", params=self._device_params())

    async def next_track(self) -> None:
        await self._request("POST", "/me/player/next", params=self._device_params())

    async def previous_track(self) -> None:
        await self._request("POST", "/me/player/previous", params=self._device_params())

    async def seek(self, position_ms: float) -> None:
        position = max(0, int(position_ms))
        await self._request("PUT", "/me/player/seek", params=self._device_params(position_ms=position))

    async def set_volume(self, volume_percent: float) -> None:
        volume = max(0, min(100, int(volume_percent + 0.5)))
        await self._request("PUT", "/me/player/volume", params=self._device_params(volume_percent=volume))

    async def set_repeat(self, mode: str) -> None:
        """Set repeat mode; anything other than off/track/context means context."""
        state = mode if mode in REPEAT_MODES else "context"
        await self._request("PUT", "/me/player/repeat", params=self._device_params(state=state))

    async def set_shuffle(self, enabled: bool | str | int) -> None:
        state = enabled is True or enabled == 1 or str(enabled).lower() == "true"
        await self._request(
            "PUT", "/me/player/shuffle", params=self._device_params(state="true" if state else "false")
        )

    async def play_track(self, track_uri_or_id: str) -> None:
        """Play a single track by URI or bare id."""
        uri = to_track_uri(track_uri_or_id)
        if not uri:
            return
        await self.play(uris=[uri])

    async def play_track_in_context(self, track_uri_or_id: str | None, context_uri_or_id: str | None) -> None:
        """Play a track within an album or playlist context."""
        track_uri = to_track_uri(track_uri_or_id)
        await self.play(
            context_uri=to_context_uri(context_uri_or_id),
            offset={"uri": track_uri} if track_uri else None,
        )
