"""Unit tests for the playback poll loop."""

import asyncio

import pytest

from spotify_bridge.exceptions import SpotifyAPIException, SpotifyRateLimitException
from spotify_bridge.models import BridgeEventName


def state_events(subscription):
    return [event for event in subscription.pending() if event.event == BridgeEventName.STATE_CHANGE]


@pytest.mark.asyncio
async def test_poll_once_broadcasts_first_snapshot(bridge, playback_response):
    subscription = bridge.gateway.subscribe()
    subscription.pending()

    payload = await bridge.poll_loop.poll_once()

    assert payload is not None
    assert bridge.context.last_payload == payload
    events = state_events(subscription)
    assert len(events) == 1
    assert events[0].data == payload.to_wire()


@pytest.mark.asyncio
async def test_unchanged_snapshot_is_not_rebroadcast(bridge):
    """Test repeated identical polls broadcast only once."""
    subscription = bridge.gateway.subscribe()
    subscription.pending()

    await bridge.poll_loop.poll_once()
    await bridge.poll_loop.poll_once()
    await bridge.poll_loop.poll_once()

    assert len(state_events(subscription)) == 1


@pytest.mark.asyncio
async def test_changed_snapshot_is_broadcast(bridge, mock_upstream, playback_factory):
    subscription = bridge.gateway.subscribe()
    subscription.pending()

    await bridge.poll_loop.poll_once()
    mock_upstream.get_playback_state.return_value = playback_factory(volume=35)
    await bridge.poll_loop.poll_once()

    events = state_events(subscription)
    assert [event.data["state"]["volume"] for event in events] == [60, 35]


@pytest.mark.asyncio
async def test_failed_poll_is_skipped(bridge, mock_upstream):
    """Test a failing read broadcasts nothing and keeps the last payload."""
    await bridge.poll_loop.poll_once()
    previous = bridge.context.last_payload
    subscription = bridge.gateway.subscribe()
    subscription.pending()
    mock_upstream.get_playback_state.side_effect = SpotifyRateLimitException("Spotify API 429", retry_after=3)

    assert await bridge.poll_loop.poll_once() is None

    assert bridge.context.last_payload is previous
    assert subscription.pending() == []
    assert bridge.poll_loop.consecutive_failures == 1
    assert bridge.poll_loop.last_error == "Spotify API 429"


@pytest.mark.asyncio
async def test_recovery_resets_failure_count(bridge, mock_upstream, playback_response):
    mock_upstream.get_playback_state.side_effect = [
        SpotifyAPIException("Spotify API 404: Player command failed: No active device found", upstream_status=404),
        SpotifyAPIException("Spotify request failed: timeout"),
        playback_response,
    ]

    await bridge.poll_loop.poll_once()
    await bridge.poll_loop.poll_once()
    assert bridge.poll_loop.consecutive_failures == 2

    await bridge.poll_loop.poll_once()
    assert bridge.poll_loop.consecutive_failures == 0
    assert bridge.poll_loop.last_error is None
    assert bridge.poll_loop.last_success_at is not None


@pytest.mark.asyncio
async def test_nothing_playing_broadcasts_stopped(bridge, mock_upstream):
    mock_upstream.get_playback_state.return_value = None

    payload = await bridge.poll_loop.poll_once()

    assert payload.playback_info.player_state.value == "Stopped"
    assert bridge.context.last_payload == payload


@pytest.mark.asyncio
async def test_last_non_zero_volume_tracking(bridge, mock_upstream, playback_factory):
    """Test zero volume polls keep the last non-zero volume for unmute."""
    mock_upstream.get_playback_state.return_value = playback_factory(volume=35)
    await bridge.poll_loop.poll_once()
    assert bridge.context.last_non_zero_volume == 35

    mock_upstream.get_playback_state.return_value = playback_factory(volume=0)
    await bridge.poll_loop.poll_once()
    assert bridge.context.last_non_zero_volume == 35


@pytest.mark.asyncio
async def test_unconfigured_poll_does_nothing(unconfigured_bridge):
    assert await unconfigured_bridge.poll_loop.poll_once() is None
    assert unconfigured_bridge.context.last_payload is None
    assert unconfigured_bridge.poll_loop.last_poll_at is None


@pytest.mark.asyncio
async def test_loop_polls_on_interval(bridge, mock_upstream, clock):
    """Test the loop polls immediately, then sleeps up to one interval per tick."""
    bridge.poll_loop.start()
    for _ in range(5):
        await asyncio.sleep(0)

    assert bridge.poll_loop.running is True
    await bridge.poll_loop.stop()

    assert bridge.poll_loop.running is False
    assert mock_upstream.get_playback_state.await_count >= 2
    assert clock.sleeps
    assert all(0 <= seconds <= 1.0 for seconds in clock.sleeps)


@pytest.mark.asyncio
async def test_loop_survives_errors(bridge, mock_upstream, clock):
    mock_upstream.get_playback_state.side_effect = SpotifyAPIException("Spotify API 500")

    bridge.poll_loop.start()
    for _ in range(5):
        await asyncio.sleep(0)

    assert bridge.poll_loop.running is True
    await bridge.poll_loop.stop()
    assert bridge.poll_loop.consecutive_failures >= 2


@pytest.mark.asyncio
async def test_stop_when_not_started(bridge):
    await bridge.poll_loop.stop()

    assert bridge.poll_loop.running is False
