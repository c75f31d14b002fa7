from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # project root


class Settings(BaseSettings):
    """Bridge settings resolved from the environment and an optional .env file.

    Spotify credentials are optional: without all three the bridge still serves
    the empty/Stopped state and rejects every command as "not configured".
    """

    api_host: str = Field(default="0.0.0.0", min_length=1, description="Server bind host")
    api_port: int = Field(
        default=8801,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("api_port", "port"),
        description="Server port",
    )

    poll_interval_ms: int = Field(default=1000, ge=100, description="Playback poll interval in milliseconds")
    allow_control: bool = Field(default=True, description="Allow control commands to reach Spotify")

    spotify_client_id: str = Field(default="", description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(default="", description="Spotify OAuth client secret")
    spotify_refresh_token: str = Field(default="", description="Spotify refresh token")
    spotify_redirect_uri: str = Field(
        default="http://127.0.0.1:8801/auth/callback",
        pattern=r"^https?://",
        description="Spotify OAuth redirect URI used by /auth/login",
    )
    spotify_device_id: str | None = Field(default=None, description="Target Spotify device ID")
    spotify_device_name: str | None = Field(default=None, description="Target Spotify device name")
    spotify_auto_transfer_on_start: bool = Field(
        default=True, description="Transfer playback to the target device on startup"
    )

    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: Path | None = Field(default=None, description="Directory for the rotating JSON log file")

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def has_spotify_credentials(self) -> bool:
        """True when client id, client secret and refresh token are all present."""
        return bool(self.spotify_client_id and self.spotify_client_secret and self.spotify_refresh_token)

    @field_validator("api_host", mode="after")
    @classmethod
    def validate_api_host(cls, v: str) -> str:
        """Ensure api_host is not empty or whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("api_host cannot be empty")
        return v

    @field_validator("spotify_device_id", "spotify_device_name", mode="after")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty device selectors as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return v


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for dependency injection.

    The .env file is read once; tests build their own Settings and pass them
    to ``create_app`` instead.

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
