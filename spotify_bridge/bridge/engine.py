"""Bridge assembly and lifecycle."""

import asyncio
from collections.abc import Awaitable, Callable

import httpx

from spotify_bridge import BRIDGE_VERSION
from spotify_bridge.bridge.context import BridgeContext
from spotify_bridge.bridge.dispatcher import ControlDispatcher
from spotify_bridge.bridge.gateway import BroadcastGateway
from spotify_bridge.bridge.normalizer import normalize
from spotify_bridge.bridge.poll_loop import PollLoop
from spotify_bridge.bridge.ramp import VolumeRampController
from spotify_bridge.config import Settings
from spotify_bridge.exceptions import SpotifyException
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.models import StateChangePayload
from spotify_bridge.protocols import UpstreamClientProtocol
from spotify_bridge.services.spotify_service import SpotifyClient
from spotify_bridge.state_managers import SpotifyAuthManager, StateManager

logger = get_logger(__name__)


def create_upstream_client(settings: Settings, client: httpx.AsyncClient) -> SpotifyClient | None:
    """Build the Spotify client, or None when credentials are missing."""
    if not settings.has_spotify_credentials:
        log_with_context(
            logger,
            "warning",
            "Spotify credentials missing (SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REFRESH_TOKEN). "
            "State polling disabled.",
            event_type="spotify_not_configured",
        )
        return None
    return SpotifyClient(
        client,
        SpotifyAuthManager(settings.spotify_refresh_token),
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        device_id=settings.spotify_device_id,
    )


class SpotifyBridge(StateManager):
    """One bridge instance: context, gateway, poll loop, ramp and dispatcher."""

    def __init__(
        self,
        upstream: UpstreamClientProtocol | None,
        control_enabled: bool = True,
        poll_interval_ms: int = 1000,
        device_id: str | None = None,
        device_name: str | None = None,
        auto_transfer_on_start: bool = True,
        version: str = BRIDGE_VERSION,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.context = BridgeContext(version=version, control_enabled=control_enabled, upstream=upstream)
        self.gateway = BroadcastGateway(self.context)
        self.poll_loop = PollLoop(self.context, self.gateway, interval_ms=poll_interval_ms, sleep=sleep)
        self.ramp = VolumeRampController(self.context, self.gateway, reconcile=self.poll_loop.poll_once, sleep=sleep)
        self.dispatcher = ControlDispatcher(self.context, self.ramp)
        self._device_id = device_id
        self._device_name = device_name
        self._auto_transfer = auto_transfer_on_start
        self._device_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "SpotifyBridge":
        return cls(
            create_upstream_client(settings, client),
            control_enabled=settings.allow_control,
            poll_interval_ms=settings.poll_interval_ms,
            device_id=settings.spotify_device_id,
            device_name=settings.spotify_device_name,
            auto_transfer_on_start=settings.spotify_auto_transfer_on_start,
        )

    @property
    def version(self) -> str:
        return self.context.version

    @property
    def control_enabled(self) -> bool:
        return self.context.control_enabled

    @property
    def configured(self) -> bool:
        return self.context.configured

    async def initialize(self) -> None:
        """Start polling and resolve the target device in the background."""
        if self.context.upstream is None:
            return
        self.poll_loop.start()
        if self._device_id or self._device_name:
            self._device_task = asyncio.create_task(self.resolve_device(), name="device-resolution")

    async def cleanup(self) -> None:
        """Stop timers and end subscriber streams; no task outlives this call."""
        if self._device_task is not None and not self._device_task.done():
            self._device_task.cancel()
            try:
                await self._device_task
            except asyncio.CancelledError:
                pass
        self._device_task = None
        await self.poll_loop.stop()
        self.ramp.cancel()
        await self.ramp.wait()
        self.gateway.close()
        log_with_context(logger, "info", "Bridge stopped", event_type="bridge_stopped")

    async def resolve_device(self) -> dict | None:
        """Pick the configured device, target it, and optionally transfer playback.

        Returns:
            The matched device, or None when nothing matched or listing failed
        """
        upstream = self.context.upstream
        if upstream is None or not (self._device_id or self._device_name):
            return None
        try:
            # restricted devices come back without an id and cannot be targeted
            devices = [d for d in await upstream.get_devices() if isinstance(d, dict) and d.get("id")]
            target = None
            if self._device_id:
                target = next((d for d in devices if d.get("id") == self._device_id), None)
            if target is None and self._device_name:
                wanted = self._device_name.lower()
                target = next((d for d in devices if (d.get("name") or "").lower() == wanted), None)
            if target is None:
                log_with_context(
                    logger,
                    "warning",
                    "Configured Spotify device not found",
                    device_id=self._device_id,
                    device_name=self._device_name,
                    available=[d.get("name") for d in devices],
                    event_type="device_not_found",
                )
                return None

            upstream.device_id = target["id"]
            log_with_context(
                logger,
                "info",
                f"Using device: {target.get('name') or 'Unknown'} ({target['id']})",
                device_id=target["id"],
                event_type="device_selected",
            )
            if self._auto_transfer:
                await upstream.transfer_playback(target["id"], False)
            return target
        except SpotifyException as e:
            log_with_context(
                logger,
                "error",
                "Transfer on start failed",
                error=e.message,
                event_type="device_transfer_failed",
            )
            return None

    async def current_state(self) -> StateChangePayload:
        """Fresh upstream read; the empty payload when not configured."""
        upstream = self.context.upstream
        if upstream is None:
            return normalize(None)
        return normalize(await upstream.get_playback_state())
