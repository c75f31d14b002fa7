"""Playback DTOs broadcast to controller clients.

Field aliases are the wire names the legacy controller clients read, so
models are always dumped with ``by_alias=True``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PlaybackStatus(str, Enum):
    """Display-oriented player state."""

    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"


class PlayerStatus(str, Enum):
    """Control-oriented player state (lower-case sibling of PlaybackStatus)."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"

    @classmethod
    def from_playback_status(cls, status: PlaybackStatus) -> "PlayerStatus":
        return cls(status.value.lower())


class PlaybackInfo(BaseModel):
    """Display-oriented snapshot of the current item."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = ""
    artist: str = ""
    album: str = ""
    duration: int = Field(default=0, ge=0, description="Item duration in milliseconds")
    playback_position: float = Field(
        default=0.0, ge=0, alias="playbackPosition", description="Position in seconds"
    )
    track_id: str = Field(default="", alias="trackId", description="Spotify URI, empty when none")
    player_state: PlaybackStatus = Field(default=PlaybackStatus.STOPPED, alias="playerState")
    album_art_url: str = Field(default="", alias="albumArtUrl")
    device_name: str = Field(default="", alias="deviceName")
    device_is_active: bool = Field(default=False, alias="deviceIsActive")


class PlayerState(BaseModel):
    """Control-oriented snapshot."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # legacy clients read the snake_case key here
    track_id: str = ""
    volume: int = Field(default=0, ge=0, le=100)
    position: float = Field(default=0.0, ge=0, description="Position in seconds")
    state: PlayerStatus = PlayerStatus.STOPPED
    is_repeating: bool = Field(default=False, alias="isRepeating")
    is_shuffling: bool = Field(default=False, alias="isShuffling")


class StateChangePayload(BaseModel):
    """Unit of broadcast and of change comparison."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    playback_info: PlaybackInfo = Field(default_factory=PlaybackInfo, alias="playbackInfo")
    state: PlayerState = Field(default_factory=PlayerState)

    def to_wire(self) -> dict:
        """Serialize with the legacy wire field names."""
        return self.model_dump(mode="json", by_alias=True)
