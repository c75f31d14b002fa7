"""Logging helpers with sensitive data redaction."""

import re

import httpx

from spotify_bridge.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

# Sensitive parameters to redact from URLs
SENSITIVE_PARAMS = [
    "token",
    "password",
    "secret",
    "code",
    "refresh_token",
    "access_token",
    "client_secret",
    "authorization",
    "bearer",
]


def redact_sensitive_data(url: str) -> str:
    """Redact sensitive query parameters from URL."""
    redacted = url
    for param in SENSITIVE_PARAMS:
        pattern = rf"{param}=([^&\s\"]+)"
        redacted = re.sub(pattern, f"{param}=***REDACTED***", redacted)
    return redacted


async def log_request(request: httpx.Request) -> None:
    """httpx event hook logging outgoing upstream requests."""
    log_with_context(
        logger,
        "debug",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """httpx event hook logging upstream responses."""
    log_with_context(
        logger,
        "debug",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )
