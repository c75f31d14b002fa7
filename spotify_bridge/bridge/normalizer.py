"""Map raw Spotify playback snapshots to the two broadcast DTOs.

``normalize`` is total: missing or malformed fields fall back to their
empty/zero value and it never raises.
"""

import math
from typing import Any

from spotify_bridge.models import (
    PlaybackInfo,
    PlaybackStatus,
    PlayerState,
    PlayerStatus,
    StateChangePayload,
)


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    return value


def _artist_names(item: dict[str, Any], is_track: bool) -> str:
    if is_track:
        artists = item.get("artists")
        if not isinstance(artists, list):
            return ""
        names = [_text(_mapping(a).get("name")) for a in artists]
        return ", ".join(n for n in names if n)
    # episodes carry their show instead of artists
    return _text(_mapping(item.get("show")).get("name"))


def _album_art(album: dict[str, Any]) -> str:
    images = album.get("images")
    if isinstance(images, list) and images:
        return _text(_mapping(images[0]).get("url"))
    return ""


def normalize_playback_info(raw: dict[str, Any] | None) -> PlaybackInfo:
    snapshot = _mapping(raw)
    item = snapshot.get("item")
    device = _mapping(snapshot.get("device"))
    if not isinstance(item, dict) or not item:
        return PlaybackInfo()

    is_track = item.get("type") == "track"
    album = _mapping(item.get("album")) if is_track else {}
    duration = int(_number(item.get("duration_ms")))
    position = _number(snapshot.get("progress_ms")) / 1000

    is_playing = snapshot.get("is_playing")
    if is_playing is True:
        status = PlaybackStatus.PLAYING
    elif is_playing is False and (duration > 0 or position > 0):
        status = PlaybackStatus.PAUSED
    else:
        status = PlaybackStatus.STOPPED

    return PlaybackInfo(
        name=_text(item.get("name")),
        artist=_artist_names(item, is_track),
        album=_text(album.get("name")),
        duration=duration,
        playback_position=position,
        track_id=_text(item.get("uri")),
        player_state=status,
        album_art_url=_album_art(album),
        device_name=_text(device.get("name")),
        device_is_active=device.get("is_active") is True,
    )


def normalize(raw: dict[str, Any] | None) -> StateChangePayload:
    """Build the broadcast payload for a raw ``GET /me/player`` body (or None)."""
    info = normalize_playback_info(raw)
    snapshot = _mapping(raw)
    device = _mapping(snapshot.get("device"))
    repeat_mode = snapshot.get("repeat_state")

    state = PlayerState(
        track_id=info.track_id,
        volume=min(100, int(_number(device.get("volume_percent")))),
        position=info.playback_position,
        state=PlayerStatus.from_playback_status(info.player_state),
        is_repeating=isinstance(repeat_mode, str) and repeat_mode != "off" and repeat_mode != "",
        is_shuffling=snapshot.get("shuffle_state") is True,
    )
    return StateChangePayload(playback_info=info, state=state)
