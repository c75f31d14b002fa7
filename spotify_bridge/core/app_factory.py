"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI
from fastapi.responses import Response

from spotify_bridge import __version__
from spotify_bridge.config import Settings, get_settings
from spotify_bridge.core.lifespan import lifespan
from spotify_bridge.core.middleware import setup_middleware
from spotify_bridge.middleware.error_handlers import register_error_handlers
from spotify_bridge.routers import auth_router, events_router, health_router, legacy_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; the process-wide settings when omitted

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Spotify Controller Bridge",
        description="""
        Serves the legacy spotify-controller API on top of the Spotify Web API.

        ## Transports
        - REST: `GET /play`, `GET /setVolume/{volume}`, ... answering plain text `OK`
        - WebSocket `/socket`: JSON `{"event", "data"}` frames both ways
        - SSE `/events`: read-only event stream

        ## Spotify Setup
        1. Set `SPOTIFY_CLIENT_ID` and `SPOTIFY_CLIENT_SECRET`
        2. Visit `/auth/login` in a browser and approve access
        3. Restart the bridge; the refresh token was saved to `.env`

        ## Health
        - `/health` - Basic health check
        - `/health/ready` - Spotify configured and polling
        - `/debug` - Bridge state and sanitized configuration
        """,
        version=__version__,
        lifespan=lifespan,
        license_info={
            "name": "MIT",
        },
    )
    app.state.settings = settings if settings is not None else get_settings()

    # Configure middleware
    setup_middleware(app)

    # Register exception handlers
    register_error_handlers(app)

    # Include routers
    app.include_router(health_router.router, tags=["health"])
    app.include_router(auth_router.router, prefix="/auth", tags=["auth"])
    app.include_router(events_router.router, tags=["events"])
    app.include_router(legacy_router.router, tags=["legacy"])

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {"message": "Spotify Controller Bridge", "docs": "/docs"}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        """Return empty favicon to prevent 404 errors."""
        return Response(content=b"", media_type="image/x-icon")

    return app
