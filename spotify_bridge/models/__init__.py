"""Spotify bridge models"""

from spotify_bridge.models.base_models import DebugInfo, DetailedHealthResponse, HealthResponse
from spotify_bridge.models.events import BridgeEvent, BridgeEventName, ClientCommand
from spotify_bridge.models.playback import (
    PlaybackInfo,
    PlaybackStatus,
    PlayerState,
    PlayerStatus,
    StateChangePayload,
)

__all__ = [
    "BridgeEvent",
    "BridgeEventName",
    "ClientCommand",
    "DebugInfo",
    "DetailedHealthResponse",
    "HealthResponse",
    "PlaybackInfo",
    "PlaybackStatus",
    "PlayerState",
    "PlayerStatus",
    "StateChangePayload",
]
