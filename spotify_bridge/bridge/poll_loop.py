"""Fixed-interval playback polling.

Each tick reads the upstream snapshot, normalizes it, remembers the last
non-zero volume and broadcasts the payload when it changed. A failed tick is
logged and skipped; it never stops the loop.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from spotify_bridge.bridge.change_detector import should_broadcast
from spotify_bridge.bridge.context import BridgeContext
from spotify_bridge.bridge.gateway import BroadcastGateway
from spotify_bridge.bridge.normalizer import normalize
from spotify_bridge.exceptions import SpotifyAPIException, SpotifyException
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.models import StateChangePayload

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000


class PollLoop:
    """Idle until ``start``; polls every ``interval_ms`` until ``stop``."""

    def __init__(
        self,
        context: BridgeContext,
        gateway: BroadcastGateway,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._context = context
        self._gateway = gateway
        self._interval = interval_ms / 1000
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self.last_poll_at: float | None = None
        self.last_success_at: float | None = None
        self.last_error: str | None = None
        self.consecutive_failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_ms(self) -> int:
        return int(self._interval * 1000)

    async def poll_once(self) -> StateChangePayload | None:
        """Run a single poll tick.

        Returns:
            The normalized payload, or None when not configured or the read failed
        """
        upstream = self._context.upstream
        if upstream is None:
            return None

        self.last_poll_at = time.time()
        try:
            raw = await upstream.get_playback_state()
        except SpotifyException as e:
            self._record_failure(e)
            return None

        payload = normalize(raw)
        self.last_success_at = time.time()
        self.last_error = None
        self.consecutive_failures = 0

        if payload.state.volume > 0:
            self._context.last_non_zero_volume = payload.state.volume
        if should_broadcast(self._context.last_payload, payload):
            self._gateway.broadcast_state(payload)
        return payload

    def _record_failure(self, error: SpotifyException) -> None:
        self.last_error = error.message
        self.consecutive_failures += 1
        if isinstance(error, SpotifyAPIException) and error.is_no_active_device:
            log_with_context(logger, "debug", "No active Spotify device", event_type="poll_no_device")
            return
        log_with_context(
            logger,
            "error",
            "Poll error",
            error=error.message,
            error_code=error.code.value,
            consecutive_failures=self.consecutive_failures,
            event_type="poll_error",
        )

    def start(self) -> None:
        """Start polling; the first poll runs immediately."""
        if self.running:
            self._task.cancel()
        self._task = asyncio.create_task(self._run(), name="playback-poll")
        log_with_context(
            logger,
            "info",
            "Playback polling started",
            interval_ms=self.interval_ms,
            event_type="poll_started",
        )

    async def stop(self) -> None:
        """Stop polling. The last broadcast payload is kept for new subscribers."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log_with_context(logger, "info", "Playback polling stopped", event_type="poll_stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Unexpected error during playback poll")
            elapsed = loop.time() - started
            await self._sleep(max(0.0, self._interval - elapsed))
