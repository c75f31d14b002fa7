"""Maps control verbs to upstream calls.

Every handler checks policy first (control enabled, upstream configured, and
for direct volume commands no ramp running) and raises a
``ControlRejectedException`` without touching the upstream when it fails.
Handlers never broadcast; the next poll tick reports their effect.

Relative seek and relative volume resolve against the last broadcast payload,
not a fresh read. Several relative commands inside one poll interval all start
from the same stale value.
"""

import inspect
import math
from collections.abc import Awaitable, Callable
from typing import Any

from spotify_bridge.bridge.context import BridgeContext, round_half_up
from spotify_bridge.bridge.ramp import VolumeRampController
from spotify_bridge.exceptions import (
    ControlDisabledException,
    NotConfiguredException,
    RampInProgressException,
    UnknownCommandException,
)
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.protocols import UpstreamClientProtocol

logger = get_logger(__name__)

VOLUME_STEP = 10
DEFAULT_RELATIVE_VOLUME = 50


def to_number(value: Any, default: float = 0) -> float:
    """Lenient numeric coercion for transport arguments ("abc" -> default)."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def clamp_volume(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


class ControlDispatcher:
    """One coroutine per control verb."""

    def __init__(self, context: BridgeContext, ramp: VolumeRampController):
        self._context = context
        self._ramp = ramp
        self._commands: dict[str, Callable[..., Awaitable[None]]] = {
            "play": self.play,
            "pause": self.pause,
            "playToggle": self.toggle,
            "next": self.next_track,
            "previous": self.previous_track,
            "setPlayerPosition": self.seek,
            "movePlayerPosition": self.seek_relative,
            "playtrack": self.play_track,
            "playtrackincontext": self.play_track_in_context,
            "setVolume": self.set_volume,
            "volumeUp": self.volume_up,
            "volumeDown": self.volume_down,
            "mute": self.mute,
            "unmute": self.unmute,
            "rampVolume": self.ramp_volume,
            "repeatOn": self.repeat_on,
            "repeatOff": self.repeat_off,
            "shuffleOn": self.shuffle_on,
            "shuffleOff": self.shuffle_off,
        }

    @property
    def commands(self) -> frozenset[str]:
        """Command names accepted by ``dispatch``."""
        return frozenset(self._commands)

    async def dispatch(self, command: str, args: list[Any] | None = None) -> None:
        """Run a command by its event-transport name.

        Missing positional arguments are passed as None; extra ones are ignored.
        """
        handler = self._commands.get(command)
        if handler is None:
            raise UnknownCommandException(command)
        arity = len(inspect.signature(handler).parameters)
        values = list(args or [])[:arity]
        values += [None] * (arity - len(values))
        await handler(*values)

    def _require_control(self) -> UpstreamClientProtocol:
        if not self._context.control_enabled:
            raise ControlDisabledException()
        if self._context.upstream is None:
            raise NotConfiguredException()
        return self._context.upstream

    def _require_volume_control(self) -> UpstreamClientProtocol:
        upstream = self._require_control()
        if self._ramp.ramping:
            raise RampInProgressException()
        return upstream

    async def play(self) -> None:
        await self._require_control().play()

    async def pause(self) -> None:
        await self._require_control().pause()

    async def toggle(self) -> None:
        """Pause when the upstream reports playing, else play.

        Reads the upstream right before acting rather than trusting the last poll.
        """
        upstream = self._require_control()
        snapshot = await upstream.get_playback_state()
        if isinstance(snapshot, dict) and snapshot.get("is_playing") is True:
            await upstream.pause()
        else:
            await upstream.play()

    async def next_track(self) -> None:
        await self._require_control().next_track()

    async def previous_track(self) -> None:
        await self._require_control().previous_track()

    async def seek(self, seconds: Any) -> None:
        upstream = self._require_control()
        position = max(0.0, to_number(seconds))
        await upstream.seek(position * 1000)

    async def seek_relative(self, delta_seconds: Any) -> None:
        upstream = self._require_control()
        position = max(0.0, self._context.last_position() + to_number(delta_seconds))
        await upstream.seek(position * 1000)

    async def play_track(self, track: Any) -> None:
        upstream = self._require_control()
        await upstream.play_track(str(track) if track is not None else "")

    async def play_track_in_context(self, track: Any, context: Any) -> None:
        upstream = self._require_control()
        await upstream.play_track_in_context(
            str(track) if track is not None else None,
            str(context) if context is not None else None,
        )

    async def set_volume(self, volume: Any) -> None:
        upstream = self._require_volume_control()
        await upstream.set_volume(clamp_volume(to_number(volume)))

    async def volume_up(self) -> None:
        upstream = self._require_volume_control()
        current = self._context.last_volume(default=DEFAULT_RELATIVE_VOLUME)
        await upstream.set_volume(clamp_volume(current + VOLUME_STEP))

    async def volume_down(self) -> None:
        upstream = self._require_volume_control()
        current = self._context.last_volume(default=DEFAULT_RELATIVE_VOLUME)
        await upstream.set_volume(clamp_volume(current - VOLUME_STEP))

    async def mute(self) -> None:
        upstream = self._require_volume_control()
        await upstream.set_volume(0)

    async def unmute(self) -> None:
        upstream = self._require_volume_control()
        await upstream.set_volume(self._context.last_non_zero_volume)

    async def ramp_volume(self, target_volume: Any, change_percent: Any, ramp_time_seconds: Any) -> None:
        """Start a ramp; returns as soon as it is scheduled. Supersedes a running ramp."""
        self._require_control()
        session = self._ramp.start(target_volume, change_percent, ramp_time_seconds)
        log_with_context(
            logger,
            "debug",
            "Ramp command accepted",
            target_volume=session.target_volume,
            event_type="ramp_command",
        )

    async def repeat_on(self) -> None:
        await self._require_control().set_repeat("context")

    async def repeat_off(self) -> None:
        await self._require_control().set_repeat("off")

    async def shuffle_on(self) -> None:
        await self._require_control().set_shuffle(True)

    async def shuffle_off(self) -> None:
        await self._require_control().set_shuffle(False)
