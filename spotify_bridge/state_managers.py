"""State managers for handling application-wide mutable state.

All state managers inherit from StateManager ABC and expose async lifecycle
hooks called from the application lifespan.
"""

import asyncio
import time
from abc import ABC, abstractmethod

# Access tokens are treated as expired this many seconds before Spotify says so
TOKEN_EXPIRY_MARGIN_SECONDS = 60


class StateManager(ABC):
    """Base class for all state managers.

    State managers own mutable application state. All subclasses must
    implement lifecycle methods.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class SpotifyAuthManager(StateManager):
    """Caches the Spotify access token and the current refresh token.

    Spotify may rotate the refresh token on any token response; the newest one
    is kept in memory so subsequent refreshes keep working.
    """

    def __init__(self, refresh_token: str = ""):
        """Initialize the Spotify auth manager.

        Args:
            refresh_token: Initial refresh token from configuration
        """
        self._refresh_token = refresh_token
        self._access_token: str | None = None
        self._token_expires_at: float = 0
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the Spotify auth manager."""
        pass

    async def cleanup(self) -> None:
        """Clear the cached access token on shutdown."""
        async with self._lock:
            self._access_token = None
            self._token_expires_at = 0

    @property
    def refresh_token(self) -> str:
        return self._refresh_token

    async def set_refresh_token(self, refresh_token: str) -> None:
        """Adopt a new refresh token."""
        async with self._lock:
            self._refresh_token = refresh_token

    async def get_token(self) -> str | None:
        """Get the current access token if available and not about to expire.

        Returns:
            Access token string or None if expired/not set
        """
        async with self._lock:
            if self._access_token and time.time() < self._token_expires_at - TOKEN_EXPIRY_MARGIN_SECONDS:
                return self._access_token
            return None

    async def set_token(self, token: str, expires_in: int) -> None:
        """Set a new access token with expiration.

        Args:
            token: The access token string
            expires_in: Expiration time in seconds
        """
        async with self._lock:
            self._access_token = token
            self._token_expires_at = time.time() + expires_in

    async def invalidate(self) -> None:
        """Drop the cached access token so the next request refreshes it."""
        async with self._lock:
            self._access_token = None
            self._token_expires_at = 0
