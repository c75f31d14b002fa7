"""Unit tests for configuration."""

import pytest
from pydantic import ValidationError

from spotify_bridge.config import Settings, get_settings

ENV_NAMES = [
    "API_HOST",
    "API_PORT",
    "PORT",
    "POLL_INTERVAL_MS",
    "ALLOW_CONTROL",
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "SPOTIFY_REFRESH_TOKEN",
    "SPOTIFY_DEVICE_ID",
    "SPOTIFY_DEVICE_NAME",
    "SPOTIFY_AUTO_TRANSFER_ON_START",
    "LOG_LEVEL",
    "LOG_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults():
    """Test Settings model has correct defaults."""
    settings = Settings(_env_file=None)

    assert settings.api_host == "0.0.0.0"
    assert settings.api_port == 8801
    assert settings.poll_interval_ms == 1000
    assert settings.allow_control is True
    assert settings.spotify_device_id is None
    assert settings.spotify_auto_transfer_on_start is True
    assert settings.log_level == "INFO"
    assert settings.log_dir is None
    assert settings.has_spotify_credentials is False


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("ALLOW_CONTROL", "false")
    monkeypatch.setenv("POLL_INTERVAL_MS", "250")
    monkeypatch.setenv("SPOTIFY_DEVICE_NAME", "Living Room")

    settings = Settings(_env_file=None)

    assert settings.api_port == 9000
    assert settings.allow_control is False
    assert settings.poll_interval_ms == 250
    assert settings.spotify_device_name == "Living Room"


def test_api_port_takes_api_port_name(monkeypatch):
    monkeypatch.setenv("API_PORT", "8123")

    assert Settings(_env_file=None).api_port == 8123


def test_has_spotify_credentials():
    settings = Settings(
        _env_file=None,
        spotify_client_id="id",
        spotify_client_secret="secret",
        spotify_refresh_token="token",
    )
    assert settings.has_spotify_credentials is True

    partial = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret")
    assert partial.has_spotify_credentials is False


def test_poll_interval_minimum():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, poll_interval_ms=50)


def test_blank_device_selectors_are_unset():
    settings = Settings(_env_file=None, spotify_device_id="  ", spotify_device_name="")

    assert settings.spotify_device_id is None
    assert settings.spotify_device_name is None


def test_empty_api_host_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, api_host="   ")


def test_log_level_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="LOUD")


def test_redirect_uri_must_be_http():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, spotify_redirect_uri="ftp://example.com/callback")


def test_get_settings_singleton(monkeypatch):
    """Test get_settings returns the same cached instance."""
    monkeypatch.setattr("spotify_bridge.config._settings_instance", None)

    first = get_settings()
    second = get_settings()

    assert first is second
