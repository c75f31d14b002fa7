"""REST surface of the legacy spotify-controller API.

Every route is a GET returning plain text ``OK`` on success. Rejections and
upstream failures are raised as ``BridgeException`` and rendered by the
registered exception handler.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from spotify_bridge.bridge import SpotifyBridge
from spotify_bridge.dependencies import get_bridge

router = APIRouter()

OK = "OK"


@router.get("/version", response_class=PlainTextResponse)
async def version(bridge: SpotifyBridge = Depends(get_bridge)):
    """Bridge version string."""
    return bridge.version


@router.get("/control_status", response_class=PlainTextResponse)
async def control_status(bridge: SpotifyBridge = Depends(get_bridge)):
    """``true`` when control commands are allowed."""
    return "true" if bridge.control_enabled else "false"


@router.get(
    "/state",
    summary="Current playback state",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "playbackInfo": {
                            "name": "Bohemian Rhapsody",
                            "artist": "Queen",
                            "album": "A Night at the Opera",
                            "duration": 354000,
                            "playbackPosition": 125.0,
                            "trackId": "spotify:track:4u7EnebtmKWzUH433cf5Qv",
                            "playerState": "Playing",
                            "albumArtUrl": "https://i.scdn.co/image/example",
                            "deviceName": "Studio",
                            "deviceIsActive": True,
                        },
                        "state": {
                            "track_id": "spotify:track:4u7EnebtmKWzUH433cf5Qv",
                            "volume": 60,
                            "position": 125.0,
                            "state": "playing",
                            "isRepeating": False,
                            "isShuffling": False,
                        },
                    }
                }
            }
        },
        502: {"description": "Spotify API error"},
    },
)
async def state(bridge: SpotifyBridge = Depends(get_bridge)):
    """Read playback state straight from Spotify (empty payload when not configured)."""
    payload = await bridge.current_state()
    return payload.to_wire()


@router.get("/play", response_class=PlainTextResponse)
async def play(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.play()
    return OK


@router.get("/pause", response_class=PlainTextResponse)
async def pause(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.pause()
    return OK


@router.get("/playToggle", response_class=PlainTextResponse)
async def play_toggle(bridge: SpotifyBridge = Depends(get_bridge)):
    """Pause if Spotify reports playing, otherwise play."""
    await bridge.dispatcher.toggle()
    return OK


@router.get("/next", response_class=PlainTextResponse)
async def next_track(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.next_track()
    return OK


@router.get("/previous", response_class=PlainTextResponse)
async def previous_track(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.previous_track()
    return OK


@router.get("/playTrack/{track}", response_class=PlainTextResponse)
async def play_track(track: str, bridge: SpotifyBridge = Depends(get_bridge)):
    """Play a track by bare id or ``spotify:track:`` URI."""
    await bridge.dispatcher.play_track(track)
    return OK


@router.get("/playTrackInContext/{track}/{context}", response_class=PlainTextResponse)
async def play_track_in_context(track: str, context: str, bridge: SpotifyBridge = Depends(get_bridge)):
    """Play a track inside an album or playlist (bare ids or URIs)."""
    await bridge.dispatcher.play_track_in_context(track, context)
    return OK


@router.get("/movePlayerPosition/{seconds}", response_class=PlainTextResponse)
async def move_player_position(seconds: str, bridge: SpotifyBridge = Depends(get_bridge)):
    """Seek relative to the last broadcast position."""
    await bridge.dispatcher.seek_relative(seconds)
    return OK


@router.get("/setPlayerPosition/{seconds}", response_class=PlainTextResponse)
async def set_player_position(seconds: str, bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.seek(seconds)
    return OK


@router.get("/volumeUp", response_class=PlainTextResponse)
async def volume_up(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.volume_up()
    return OK


@router.get("/volumeDown", response_class=PlainTextResponse)
async def volume_down(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.volume_down()
    return OK


@router.get("/setVolume/{volume}", response_class=PlainTextResponse)
async def set_volume(volume: str, bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.set_volume(volume)
    return OK


@router.get("/rampVolume/{volume}/{change_percent}/{ramp_time}", response_class=PlainTextResponse)
async def ramp_volume(
    volume: str,
    change_percent: str,
    ramp_time: str,
    bridge: SpotifyBridge = Depends(get_bridge),
):
    """Start a volume ramp; responds immediately while the ramp runs."""
    await bridge.dispatcher.ramp_volume(volume, change_percent, ramp_time)
    return OK


@router.get("/mute", response_class=PlainTextResponse)
async def mute(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.mute()
    return OK


@router.get("/unmute", response_class=PlainTextResponse)
async def unmute(bridge: SpotifyBridge = Depends(get_bridge)):
    """Restore the last non-zero volume seen by the poll loop."""
    await bridge.dispatcher.unmute()
    return OK


@router.get("/repeatOn", response_class=PlainTextResponse)
async def repeat_on(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.repeat_on()
    return OK


@router.get("/repeatOff", response_class=PlainTextResponse)
async def repeat_off(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.repeat_off()
    return OK


@router.get("/shuffleOn", response_class=PlainTextResponse)
async def shuffle_on(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.shuffle_on()
    return OK


@router.get("/shuffleOff", response_class=PlainTextResponse)
async def shuffle_off(bridge: SpotifyBridge = Depends(get_bridge)):
    await bridge.dispatcher.shuffle_off()
    return OK
