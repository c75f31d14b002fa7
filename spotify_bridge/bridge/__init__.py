"""State reconciliation and control-dispatch engine."""

from spotify_bridge.bridge.change_detector import should_broadcast
from spotify_bridge.bridge.context import BridgeContext, RampSession
from spotify_bridge.bridge.dispatcher import ControlDispatcher
from spotify_bridge.bridge.engine import SpotifyBridge, create_upstream_client
from spotify_bridge.bridge.gateway import BroadcastGateway, Subscription
from spotify_bridge.bridge.normalizer import normalize
from spotify_bridge.bridge.poll_loop import PollLoop
from spotify_bridge.bridge.ramp import VolumeRampController, plan_ramp

__all__ = [
    "BridgeContext",
    "BroadcastGateway",
    "ControlDispatcher",
    "PollLoop",
    "RampSession",
    "SpotifyBridge",
    "Subscription",
    "VolumeRampController",
    "create_upstream_client",
    "normalize",
    "plan_ramp",
    "should_broadcast",
]
