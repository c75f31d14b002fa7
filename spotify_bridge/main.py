"""Main FastAPI application entry point."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from spotify_bridge.config import get_settings
from spotify_bridge.core.app_factory import create_app
from spotify_bridge.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

settings = get_settings()

# Configure structured logging (console, plus JSON file when LOG_DIR is set)
setup_logging(settings.log_level, settings.log_dir)

# Create application
app = create_app(settings)


def run() -> None:
    """Console entry point: serve the bridge with uvicorn."""
    uvicorn.run(
        "spotify_bridge.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
