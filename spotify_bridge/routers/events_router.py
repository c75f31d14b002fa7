"""Event transports: a bidirectional WebSocket and a read-only SSE stream."""

import asyncio
import json
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse
from starlette.websockets import WebSocketState

from spotify_bridge.bridge import SpotifyBridge, Subscription
from spotify_bridge.bridge.gateway import state_change_event
from spotify_bridge.dependencies import get_bridge
from spotify_bridge.exceptions import BridgeException, ControlRejectedException
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.models import BridgeEvent, BridgeEventName, ClientCommand

router = APIRouter()
logger = get_logger(__name__)

SSE_KEEPALIVE_SECONDS = 30.0


async def handle_query(bridge: SpotifyBridge, subscription: Subscription, command: str) -> bool:
    """Answer the read-only requests on the requesting connection only.

    Returns:
        True when ``command`` was a query
    """
    if command == "version":
        subscription.push(BridgeEvent(event=BridgeEventName.VERSION, data=bridge.version))
    elif command == "control_status":
        subscription.push(BridgeEvent(event=BridgeEventName.CONTROL_STATUS, data=bridge.control_enabled))
    elif command == "state":
        payload = bridge.context.last_payload
        if payload is not None:
            subscription.push(state_change_event(payload))
        else:
            # a fresh poll broadcasts to everyone once there is something to report
            await bridge.poll_loop.poll_once()
    else:
        return False
    return True


async def handle_command(bridge: SpotifyBridge, subscription: Subscription, message: Any) -> None:
    """Run one client frame, replying on the same connection when it fails."""
    try:
        frame = ClientCommand.model_validate(message)
    except ValidationError as e:
        subscription.push(
            BridgeEvent(
                event=BridgeEventName.COMMAND_ERROR,
                data={"command": None, "code": "VALIDATION_ERROR", "message": str(e.errors()[0]["msg"])},
            )
        )
        return

    if await handle_query(bridge, subscription, frame.event):
        return

    try:
        await bridge.dispatcher.dispatch(frame.event, frame.arguments)
    except ControlRejectedException as e:
        log_with_context(
            logger,
            "info",
            "Command rejected",
            command=frame.event,
            error_code=e.code.value,
            event_type="command_rejected",
        )
        subscription.push(
            BridgeEvent(
                event=BridgeEventName.COMMAND_REJECTED,
                data={"command": frame.event, "code": e.code.value, "message": e.message},
            )
        )
    except BridgeException as e:
        log_with_context(
            logger,
            "error",
            "Command failed",
            command=frame.event,
            error=e.message,
            error_code=e.code.value,
            event_type="command_error",
        )
        subscription.push(
            BridgeEvent(
                event=BridgeEventName.COMMAND_ERROR,
                data={"command": frame.event, "code": e.code.value, "message": e.message},
            )
        )


@router.websocket("/socket")
async def socket_events(websocket: WebSocket, bridge: SpotifyBridge = Depends(get_bridge)):
    """Push bridge events and accept legacy commands as JSON frames.

    Server frames: ``{"event": "state_change", "data": {...}}``.
    Client frames: ``{"event": "setVolume", "args": [40]}``.
    """
    await websocket.accept()
    subscription = bridge.gateway.subscribe()

    async def send_events() -> None:
        async for event in subscription:
            await websocket.send_json(event.to_wire())

    async def receive_commands() -> None:
        while True:
            try:
                message = await websocket.receive_json()
            except json.JSONDecodeError:
                subscription.push(
                    BridgeEvent(
                        event=BridgeEventName.COMMAND_ERROR,
                        data={"command": None, "code": "VALIDATION_ERROR", "message": "Invalid JSON frame"},
                    )
                )
                continue
            await handle_command(bridge, subscription, message)

    sender = asyncio.create_task(send_events())
    receiver = asyncio.create_task(receive_commands())
    try:
        await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        bridge.gateway.unsubscribe(subscription)
        for task in (sender, receiver):
            task.cancel()
        results = await asyncio.gather(sender, receiver, return_exceptions=True)

    for result in results:
        if isinstance(result, Exception) and not isinstance(result, WebSocketDisconnect):
            log_with_context(
                logger,
                "warning",
                "WebSocket connection error",
                error=str(result),
                error_type=type(result).__name__,
                event_type="websocket_error",
            )

    # the gateway closed the stream (shutdown) while the client is still connected
    if (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    ):
        await websocket.close()


@router.get("/events")
async def sse_events(request: Request, bridge: SpotifyBridge = Depends(get_bridge)):
    """Server-Sent Events stream of bridge events."""
    subscription = bridge.gateway.subscribe()

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await subscription.get(timeout=SSE_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield {"comment": "keepalive"}
                    continue
                if event is None:
                    break
                yield {"event": event.event.value, "data": json.dumps(event.data)}
        finally:
            bridge.gateway.unsubscribe(subscription)

    return EventSourceResponse(event_generator())
