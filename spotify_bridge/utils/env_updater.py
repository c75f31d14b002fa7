"""Utility for safely updating .env file with new configuration values."""

from pathlib import Path

from spotify_bridge.config import BASE_DIR
from spotify_bridge.logging_config import get_logger

logger = get_logger(__name__)


def update_env_file(env_path: Path, key: str, value: str) -> None:
    """Update or add a key-value pair in .env file, creating the file if needed.

    Args:
        env_path: Path to .env file
        key: Environment variable name (e.g., "SPOTIFY_REFRESH_TOKEN")
        value: New value for the variable

    Raises:
        PermissionError: If .env file is not writable
        ValueError: If key or value contains invalid characters
    """
    if not key or "=" in key or "\n" in key:
        raise ValueError(f"Invalid environment variable key: {key}")
    if "\n" in value:
        raise ValueError(f"Value for {key} must be a single line")

    lines = env_path.read_text(encoding="utf-8").splitlines() if env_path.exists() else []

    updated = False
    for i, line in enumerate(lines):
        # Skip comments and empty lines
        if line.strip().startswith("#") or not line.strip():
            continue

        if line.startswith(f"{key}="):
            lines[i] = f"{key}={value}"
            updated = True
            logger.info("Updated %s in .env file", key)
            break

    if not updated:
        if lines and lines[-1].strip():
            lines.append("")
        lines.append(f"# Auto-saved {key}")
        lines.append(f"{key}={value}")
        logger.info("Added %s to .env file", key)

    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def get_env_path() -> Path:
    """Path to the .env file in the project root (the one Settings reads)."""
    return BASE_DIR / ".env"
