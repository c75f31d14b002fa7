"""Per-bridge mutable state shared by the bridge components."""

from dataclasses import dataclass, field

from spotify_bridge.models import StateChangePayload
from spotify_bridge.protocols import UpstreamClientProtocol

DEFAULT_UNMUTE_VOLUME = 50


@dataclass
class RampSession:
    """One running volume ramp.

    Steps run from 0 to ``total_steps`` inclusive; the volume applied at the
    last step is exactly ``target_volume``.
    """

    start_volume: int
    target_volume: int
    step_size: int
    total_steps: int
    step_delay_ms: int
    current_step: int = 0

    @property
    def finished(self) -> bool:
        return self.current_step >= self.total_steps

    def volume_at_current_step(self) -> int:
        fraction = self.current_step / self.total_steps
        volume = self.start_volume + (self.target_volume - self.start_volume) * fraction
        return max(0, min(100, round_half_up(volume)))

    def advance(self) -> None:
        self.current_step += 1


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching controller clients."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


@dataclass
class BridgeContext:
    """State owned by one bridge instance.

    Every component receives the same context, so several bridges can live in
    one process (as the tests do). Mutations happen between awaits only.
    """

    version: str
    control_enabled: bool = True
    upstream: UpstreamClientProtocol | None = None
    last_payload: StateChangePayload | None = None
    last_non_zero_volume: int = DEFAULT_UNMUTE_VOLUME
    ramp_session: RampSession | None = field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return self.upstream is not None

    @property
    def ramping(self) -> bool:
        return self.ramp_session is not None

    def last_volume(self, default: int) -> int:
        """Volume from the last broadcast payload."""
        if self.last_payload is None:
            return default
        return self.last_payload.state.volume

    def last_position(self) -> float:
        """Position in seconds from the last broadcast payload."""
        if self.last_payload is None:
            return 0.0
        return self.last_payload.state.position
