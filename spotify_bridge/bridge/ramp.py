"""Timed, stepped volume ramp.

The controller is a two-state machine, Idle and Ramping(session), driven by
``start``, ``tick``, ``cancel`` and completion. At most one session and one
timer task exist at a time; starting a ramp cancels the previous one first.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable

from spotify_bridge.bridge.context import BridgeContext, RampSession, round_half_up
from spotify_bridge.bridge.gateway import BroadcastGateway
from spotify_bridge.exceptions import SpotifyException
from spotify_bridge.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

MIN_STEP_DELAY_MS = 100

Sleep = Callable[[float], Awaitable[None]]


def _as_number(value: object, default: float) -> float:
    """Coerce like the controller clients do: non-numeric or zero means default."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number) or number == 0:
        return default
    return number


def plan_ramp(
    start_volume: int,
    target_volume: object,
    change_percent: object,
    ramp_time_seconds: object,
) -> RampSession:
    """Compute the step plan for a ramp from ``start_volume`` to ``target_volume``."""
    target = max(0, min(100, round_half_up(_as_number(target_volume, 0))))
    step_size = max(1, round_half_up(_as_number(change_percent, 1)))
    total_steps = math.ceil(abs(target - start_volume) / step_size) or 1
    ramp_time_ms = _as_number(ramp_time_seconds, 1) * 1000
    step_delay_ms = max(MIN_STEP_DELAY_MS, math.floor(ramp_time_ms / total_steps))
    return RampSession(
        start_volume=start_volume,
        target_volume=target,
        step_size=step_size,
        total_steps=total_steps,
        step_delay_ms=step_delay_ms,
    )


class VolumeRampController:
    """Runs volume ramps against the upstream client.

    Each tick applies one volume step; the first tick runs immediately. When the
    final step is applied the session is cleared, ``ramping_state=false`` is
    broadcast and ``reconcile`` (a forced poll) runs so the broadcast state
    catches up with the applied volume.
    """

    def __init__(
        self,
        context: BridgeContext,
        gateway: BroadcastGateway,
        reconcile: Callable[[], Awaitable[object]],
        sleep: Sleep = asyncio.sleep,
    ):
        self._context = context
        self._gateway = gateway
        self._reconcile = reconcile
        self._sleep = sleep
        self._task: asyncio.Task | None = None

    @property
    def ramping(self) -> bool:
        return self._context.ramping

    @property
    def session(self) -> RampSession | None:
        return self._context.ramp_session

    def start(self, target_volume: object, change_percent: object, ramp_time_seconds: object) -> RampSession:
        """Cancel any running ramp and start a new one."""
        self.cancel()

        session = plan_ramp(
            self._context.last_volume(default=0),
            target_volume,
            change_percent,
            ramp_time_seconds,
        )
        self._context.ramp_session = session
        self._gateway.broadcast_ramping(True)
        log_with_context(
            logger,
            "info",
            "Volume ramp started",
            start_volume=session.start_volume,
            target_volume=session.target_volume,
            total_steps=session.total_steps,
            step_delay_ms=session.step_delay_ms,
            event_type="ramp_started",
        )
        self._task = asyncio.create_task(self._run(session), name="volume-ramp")
        return session

    def cancel(self) -> bool:
        """Cancel the running ramp, if any. Returns True when one was cancelled."""
        session = self._context.ramp_session
        task = self._task
        # _run clears the handle on exit
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        if session is None:
            return False

        self._context.ramp_session = None
        self._gateway.broadcast_ramping(False)
        log_with_context(
            logger,
            "info",
            "Volume ramp cancelled",
            current_step=session.current_step,
            total_steps=session.total_steps,
            event_type="ramp_cancelled",
        )
        return True

    async def tick(self, session: RampSession) -> bool:
        """Apply the current step of ``session``. Returns True when the ramp is over."""
        if self._context.ramp_session is not session:
            return True

        volume = session.volume_at_current_step()
        upstream = self._context.upstream
        if upstream is not None and self._context.control_enabled:
            try:
                await upstream.set_volume(volume)
            except SpotifyException as e:
                log_with_context(
                    logger,
                    "error",
                    "Ramp setVolume failed",
                    volume=volume,
                    error=e.message,
                    event_type="ramp_step_failed",
                )

        # superseded while the request was in flight
        if self._context.ramp_session is not session:
            return True

        if session.finished:
            await self._complete(session)
            return True
        session.advance()
        return False

    async def _complete(self, session: RampSession) -> None:
        self._context.ramp_session = None
        self._gateway.broadcast_ramping(False)
        log_with_context(
            logger,
            "info",
            "Volume ramp completed",
            target_volume=session.target_volume,
            event_type="ramp_completed",
        )
        await self._reconcile()

    async def _run(self, session: RampSession) -> None:
        try:
            while True:
                if await self.tick(session):
                    return
                await self._sleep(session.step_delay_ms / 1000)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Volume ramp aborted by unexpected error")
            if self._context.ramp_session is session:
                self._context.ramp_session = None
                self._gateway.broadcast_ramping(False)
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    async def wait(self) -> None:
        """Wait for the running ramp task to finish (or be cancelled)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
