"""Unit tests for playback state normalization."""

import json

from spotify_bridge.bridge import normalize
from spotify_bridge.bridge.normalizer import normalize_playback_info
from spotify_bridge.models import PlaybackStatus, PlayerStatus


def test_normalize_playing_track(playback_response):
    """Test a playing track maps to both DTOs."""
    payload = normalize(playback_response)

    info = payload.playback_info
    assert info.name == "Bohemian Rhapsody"
    assert info.artist == "Queen"
    assert info.album == "A Night at the Opera"
    assert info.duration == 354000
    assert info.playback_position == 125.0
    assert info.track_id == "spotify:track:4u7EnebtmKWzUH433cf5Qv"
    assert info.player_state == PlaybackStatus.PLAYING
    assert info.album_art_url == "https://i.scdn.co/image/large"
    assert info.device_name == "Studio"
    assert info.device_is_active is True

    state = payload.state
    assert state.track_id == info.track_id
    assert state.volume == 60
    assert state.position == 125.0
    assert state.state == PlayerStatus.PLAYING
    assert state.is_repeating is False
    assert state.is_shuffling is False


def test_normalize_none_is_stopped():
    """Test nothing playing anywhere yields the empty payload."""
    payload = normalize(None)

    assert payload.playback_info.player_state == PlaybackStatus.STOPPED
    assert payload.playback_info.name == ""
    assert payload.playback_info.track_id == ""
    assert payload.state.state == PlayerStatus.STOPPED
    assert payload.state.volume == 0
    assert payload.state.position == 0


def test_normalize_missing_item_is_stopped(playback_factory):
    """Test a snapshot without an item is Stopped even when flagged playing."""
    payload = normalize(playback_factory(item=None, is_playing=True))

    assert payload.playback_info.player_state == PlaybackStatus.STOPPED
    # device volume is still reported
    assert payload.state.volume == 60


def test_normalize_paused_with_progress(playback_factory):
    """Test not playing with a position is Paused."""
    payload = normalize(playback_factory(is_playing=False))

    assert payload.playback_info.player_state == PlaybackStatus.PAUSED
    assert payload.state.state == PlayerStatus.PAUSED


def test_normalize_not_playing_at_zero_without_duration(playback_factory):
    """Test not playing at position zero with no duration is Stopped."""
    raw = playback_factory(is_playing=False, progress_ms=0)
    raw["item"]["duration_ms"] = 0

    assert normalize(raw).playback_info.player_state == PlaybackStatus.STOPPED


def test_normalize_unknown_playing_flag_is_stopped(playback_factory):
    """Test a missing is_playing flag is neither Playing nor Paused."""
    raw = playback_factory()
    del raw["is_playing"]

    assert normalize(raw).playback_info.player_state == PlaybackStatus.STOPPED


def test_normalize_episode_uses_show_name(playback_factory):
    """Test podcast episodes report the show as artist and have no album."""
    raw = playback_factory()
    raw["item"] = {
        "type": "episode",
        "name": "Episode 12",
        "uri": "spotify:episode:abc",
        "duration_ms": 1800000,
        "show": {"name": "The Show"},
    }

    info = normalize(raw).playback_info

    assert info.artist == "The Show"
    assert info.album == ""
    assert info.album_art_url == ""


def test_normalize_item_without_type_is_not_a_track(playback_factory):
    """Test an untyped item reports its show and no album, like an episode."""
    raw = playback_factory()
    del raw["item"]["type"]
    raw["item"]["show"] = {"name": "The Show"}

    info = normalize(raw).playback_info

    assert info.artist == "The Show"
    assert info.album == ""
    assert info.album_art_url == ""
    assert info.name == "Bohemian Rhapsody"


def test_normalize_multiple_artists(playback_factory):
    raw = playback_factory()
    raw["item"]["artists"] = [{"name": "Queen"}, {"name": "David Bowie"}, {}]

    assert normalize(raw).playback_info.artist == "Queen, David Bowie"


def test_normalize_malformed_numbers(playback_factory):
    """Test negative, non-numeric and NaN values fall back to zero."""
    raw = playback_factory(volume="loud", progress_ms=-5)
    raw["item"]["duration_ms"] = float("nan")

    payload = normalize(raw)

    assert payload.state.volume == 0
    assert payload.state.position == 0
    assert payload.playback_info.duration == 0


def test_normalize_infinite_numbers(playback_factory):
    """Test Infinity, which JSON decoding accepts, falls back to zero."""
    raw = playback_factory(volume=float("inf"), progress_ms=float("inf"))
    raw["item"]["duration_ms"] = json.loads("Infinity")

    payload = normalize(raw)

    assert payload.state.volume == 0
    assert payload.state.position == 0
    assert payload.playback_info.duration == 0
    assert normalize(playback_factory(volume=float("-inf"))).state.volume == 0


def test_normalize_missing_device(playback_factory):
    raw = playback_factory()
    del raw["device"]

    payload = normalize(raw)

    assert payload.state.volume == 0
    assert payload.playback_info.device_name == ""
    assert payload.playback_info.device_is_active is False


def test_normalize_repeat_and_shuffle(playback_factory):
    """Test any repeat mode other than off counts as repeating."""
    assert normalize(playback_factory(repeat_state="track")).state.is_repeating is True
    assert normalize(playback_factory(repeat_state="context")).state.is_repeating is True
    assert normalize(playback_factory(repeat_state="off")).state.is_repeating is False
    assert normalize(playback_factory(repeat_state=None)).state.is_repeating is False
    assert normalize(playback_factory(shuffle_state=True)).state.is_shuffling is True
    assert normalize(playback_factory(shuffle_state="true")).state.is_shuffling is False


def test_normalize_playback_info_without_images(playback_factory):
    raw = playback_factory()
    raw["item"]["album"]["images"] = []

    assert normalize_playback_info(raw).album_art_url == ""


def test_wire_names(playback_response):
    """Test the payload serializes with the names controller clients read."""
    wire = normalize(playback_response).to_wire()

    assert set(wire) == {"playbackInfo", "state"}
    assert wire["playbackInfo"]["playbackPosition"] == 125.0
    assert wire["playbackInfo"]["trackId"] == "spotify:track:4u7EnebtmKWzUH433cf5Qv"
    assert wire["playbackInfo"]["playerState"] == "Playing"
    assert wire["playbackInfo"]["albumArtUrl"] == "https://i.scdn.co/image/large"
    assert wire["state"]["track_id"] == "spotify:track:4u7EnebtmKWzUH433cf5Qv"
    assert wire["state"]["state"] == "playing"
    assert wire["state"]["isRepeating"] is False
    assert wire["state"]["isShuffling"] is False
