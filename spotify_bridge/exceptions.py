"""Custom exceptions for the Spotify bridge with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    BRIDGE_ERROR = "BRIDGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Control policy rejections
    CONTROL_DISABLED = "CONTROL_DISABLED"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    RAMP_IN_PROGRESS = "RAMP_IN_PROGRESS"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"

    # Spotify errors
    SPOTIFY_ERROR = "SPOTIFY_ERROR"
    SPOTIFY_AUTH_ERROR = "SPOTIFY_AUTH_ERROR"
    SPOTIFY_NOT_AUTHENTICATED = "SPOTIFY_NOT_AUTHENTICATED"
    SPOTIFY_API_ERROR = "SPOTIFY_API_ERROR"
    SPOTIFY_RATE_LIMIT = "SPOTIFY_RATE_LIMIT"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"


class BridgeException(Exception):
    """Base exception for bridge errors with HTTP status code support.

    All custom exceptions inherit from this class so the transports can map
    them to a response without knowing the concrete type.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.BRIDGE_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize bridge exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ControlRejectedException(BridgeException):
    """A command was refused by bridge policy before reaching Spotify."""


class ControlDisabledException(ControlRejectedException):
    """Control commands are globally disabled."""

    def __init__(self, message: str = "Control disabled", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.CONTROL_DISABLED, status_code=403, details=details)


class NotConfiguredException(ControlRejectedException):
    """No Spotify credentials, so there is no upstream client."""

    def __init__(self, message: str = "Spotify not configured", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.NOT_CONFIGURED, status_code=503, details=details)


class RampInProgressException(ControlRejectedException):
    """A direct volume command arrived while a volume ramp is running."""

    def __init__(self, message: str = "Volume ramping in progress", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.RAMP_IN_PROGRESS, status_code=409, details=details)


class UnknownCommandException(BridgeException):
    """An event-transport command name is not recognised."""

    def __init__(self, command: str):
        super().__init__(
            f"Unknown command: {command}",
            code=ErrorCode.UNKNOWN_COMMAND,
            status_code=400,
            details={"command": command},
        )


class SpotifyException(BridgeException):
    """Spotify-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SPOTIFY_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class SpotifyAuthException(SpotifyException):
    """Spotify token refresh failed."""

    def __init__(self, message: str = "Spotify authentication failed", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_AUTH_ERROR,
            status_code=401,
            details=details,
        )


class SpotifyNotAuthenticatedException(SpotifyException):
    """No refresh token available."""

    def __init__(self, message: str = "Not authenticated with Spotify", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_NOT_AUTHENTICATED,
            status_code=401,
            details=details,
        )


class SpotifyRateLimitException(SpotifyException):
    """Spotify answered 429 Too Many Requests."""

    def __init__(self, message: str, retry_after: float | None = None, details: dict[str, Any] | None = None):
        self.retry_after = retry_after
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_RATE_LIMIT,
            status_code=429,
            details={**(details or {}), "retry_after": retry_after},
        )


class SpotifyAPIException(SpotifyException):
    """Spotify API request failed."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.upstream_status = upstream_status
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_API_ERROR,
            status_code=status_code,
            details={**(details or {}), "upstream_status": upstream_status},
        )

    @property
    def is_no_active_device(self) -> bool:
        """Spotify reports this when nothing is playing anywhere; it is expected while idle."""
        return "no active device" in self.message.lower()


class ConfigurationException(BridgeException):
    """Configuration errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)
