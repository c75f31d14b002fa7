"""Health and debug endpoints."""

import platform
import sys
import time
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from spotify_bridge import __version__
from spotify_bridge.bridge import SpotifyBridge
from spotify_bridge.config import Settings
from spotify_bridge.dependencies import get_bridge, get_settings
from spotify_bridge.models import DebugInfo, DetailedHealthResponse, HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint.

    For dependency status, use `/health/ready`.
    """
    return HealthResponse(status="ok", version=__version__)


@router.get("/health/ready", response_model=DetailedHealthResponse)
async def readiness_check(bridge: SpotifyBridge = Depends(get_bridge)):
    """Readiness probe - is the bridge observing Spotify?

    **Returns:**
    - 200: Spotify is configured and the last poll succeeded
    - 503: Not configured, polling stopped, or the last poll failed
    """
    checks = {}
    all_healthy = True

    checks["spotify_configured"] = "ok" if bridge.configured else "not_configured"
    if not bridge.configured:
        all_healthy = False

    poll_loop = bridge.poll_loop
    checks["poll_loop"] = "running" if poll_loop.running else "stopped"
    if not poll_loop.running:
        all_healthy = False

    if poll_loop.last_error:
        checks["last_poll"] = f"failed: {poll_loop.last_error[:50]}"
        all_healthy = False
    elif poll_loop.last_success_at is None:
        checks["last_poll"] = "pending"
    else:
        checks["last_poll"] = "ok"

    status_code = 200 if all_healthy else 503
    status = "healthy" if all_healthy else "unhealthy"

    return JSONResponse(
        status_code=status_code,
        content=DetailedHealthResponse(
            status=status,
            version=__version__,
            timestamp=datetime.now(UTC),
            checks=checks,
        ).model_dump(mode="json"),
    )


@router.get("/debug", response_model=DebugInfo)
async def debug_info(
    request: Request,
    bridge: SpotifyBridge = Depends(get_bridge),
    settings: Settings = Depends(get_settings),
):
    """Debug endpoint with bridge state and sanitized configuration."""
    startup_time = getattr(request.app.state, "startup_time", time.time())
    system_info = {
        "version": bridge.version,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "platform": platform.system(),
        "uptime_seconds": int(time.time() - startup_time),
        "total_requests": getattr(request.app.state, "request_count", 0),
    }

    context = bridge.context
    poll_loop = bridge.poll_loop
    session = context.ramp_session
    state_info = {
        "configured": bridge.configured,
        "control_enabled": context.control_enabled,
        "device_id": context.upstream.device_id if context.upstream is not None else None,
        "polling": poll_loop.running,
        "last_poll_at": poll_loop.last_poll_at,
        "last_success_at": poll_loop.last_success_at,
        "consecutive_poll_failures": poll_loop.consecutive_failures,
        "last_poll_error": poll_loop.last_error,
        "has_state": context.last_payload is not None,
        "last_non_zero_volume": context.last_non_zero_volume,
        "ramping": context.ramping,
        "ramp": (
            {
                "start_volume": session.start_volume,
                "target_volume": session.target_volume,
                "current_step": session.current_step,
                "total_steps": session.total_steps,
            }
            if session is not None
            else None
        ),
        "subscribers": bridge.gateway.subscriber_count,
    }

    config_info = {
        "api_host": settings.api_host,
        "api_port": settings.api_port,
        "poll_interval_ms": settings.poll_interval_ms,
        "allow_control": settings.allow_control,
        "spotify_device_id": settings.spotify_device_id,
        "spotify_device_name": settings.spotify_device_name,
        "spotify_auto_transfer_on_start": settings.spotify_auto_transfer_on_start,
        "spotify_credentials": "present" if settings.has_spotify_credentials else "missing",
    }

    return DebugInfo(system=system_info, state=state_info, config=config_info)
