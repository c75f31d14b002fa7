"""Protocol definitions for dependency injection."""

from typing import Any, Protocol


class UpstreamClientProtocol(Protocol):
    """Playback provider interface the bridge core depends on.

    ``SpotifyClient`` implements it; tests substitute mocks. Every call may
    raise ``SpotifyException`` with a human-readable message.
    """

    device_id: str | None

    async def get_playback_state(self) -> dict[str, Any] | None: ...

    async def get_devices(self) -> list[dict[str, Any]]: ...

    async def transfer_playback(self, device_id: str, play: bool = False) -> None: ...

    async def play(
        self,
        uris: list[str] | None = None,
        context_uri: str | None = None,
        offset: dict[str, Any] | None = None,
    ) -> None: ...

    async def pause(self) -> None: ...

    async def next_track(self) -> None: ...

    async def previous_track(self) -> None: ...

    async def seek(self, position_ms: float) -> None: ...

    async def set_volume(self, volume_percent: float) -> None: ...

    async def set_repeat(self, mode: str) -> None: ...

    async def set_shuffle(self, enabled: bool) -> None: ...

    async def play_track(self, track_uri_or_id: str) -> None: ...

    async def play_track_in_context(self, track_uri_or_id: str | None, context_uri_or_id: str | None) -> None: ...
