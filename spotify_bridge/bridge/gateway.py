"""Fan-out of bridge events to connected subscribers."""

import asyncio
from collections.abc import AsyncIterator

from spotify_bridge.bridge.context import BridgeContext
from spotify_bridge.logging_config import get_logger, log_with_context
from spotify_bridge.models import BridgeEvent, BridgeEventName, StateChangePayload

logger = get_logger(__name__)

SUBSCRIBER_QUEUE_SIZE = 64


class Subscription:
    """A single subscriber's FIFO event queue.

    Iterating yields events until the gateway closes or the subscriber
    unsubscribes.
    """

    def __init__(self, gateway: "BroadcastGateway", maxsize: int = SUBSCRIBER_QUEUE_SIZE):
        self._gateway = gateway
        self._queue: asyncio.Queue[BridgeEvent | None] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def push(self, event: BridgeEvent) -> bool:
        """Queue an event; returns False when the subscriber is closed or full.

        A state change arriving at a full queue replaces the oldest queued
        state change, so a slow subscriber still ends on the latest state.
        """
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            if event.event == BridgeEventName.STATE_CHANGE and self._replace_oldest_state(event):
                log_with_context(
                    logger,
                    "warning",
                    "Replacing stale state for slow subscriber",
                    bridge_event=event.event.value,
                    event_type="subscriber_state_replaced",
                )
                return True
            log_with_context(
                logger,
                "warning",
                "Dropping event for slow subscriber",
                bridge_event=event.event.value,
                event_type="subscriber_queue_full",
            )
            return False
        return True

    def _replace_oldest_state(self, event: BridgeEvent) -> bool:
        queued = []
        while not self._queue.empty():
            queued.append(self._queue.get_nowait())
        stale = next(
            (i for i, q in enumerate(queued) if q is not None and q.event == BridgeEventName.STATE_CHANGE),
            None,
        )
        if stale is not None:
            del queued[stale]
            queued.append(event)
        for q in queued:
            self._queue.put_nowait(q)
        return stale is not None

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # drop the oldest event to make room for the end-of-stream marker
            self._queue.get_nowait()
            self._queue.put_nowait(None)

    async def get(self, timeout: float | None = None) -> BridgeEvent | None:
        """Next event, or None at end of stream. Raises TimeoutError on timeout."""
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def pending(self) -> list[BridgeEvent]:
        """Drain and return queued events without waiting."""
        events = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                events.append(event)
        return events

    def __aiter__(self) -> AsyncIterator[BridgeEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[BridgeEvent]:
        try:
            while True:
                event = await self._queue.get()
                if event is None:
                    return
                yield event
        finally:
            self._gateway.unsubscribe(self)


class BroadcastGateway:
    """Retains the last payload and publishes events to every subscriber.

    New subscribers are primed with the version, control status, last payload
    (if any) and ramping flag, so they never wait for a poll tick.
    """

    def __init__(self, context: BridgeContext):
        self._context = context
        self._subscribers: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def initial_events(self) -> list[BridgeEvent]:
        events = [
            BridgeEvent(event=BridgeEventName.VERSION, data=self._context.version),
            BridgeEvent(event=BridgeEventName.CONTROL_STATUS, data=self._context.control_enabled),
        ]
        if self._context.last_payload is not None:
            events.append(state_change_event(self._context.last_payload))
        events.append(BridgeEvent(event=BridgeEventName.RAMPING_STATE, data=self._context.ramping))
        return events

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        for event in self.initial_events():
            subscription.push(event)
        self._subscribers.add(subscription)
        log_with_context(
            logger,
            "info",
            "Subscriber connected",
            subscribers=len(self._subscribers),
            event_type="subscriber_connected",
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription not in self._subscribers:
            return
        self._subscribers.discard(subscription)
        subscription.close()
        log_with_context(
            logger,
            "info",
            "Subscriber disconnected",
            subscribers=len(self._subscribers),
            event_type="subscriber_disconnected",
        )

    def publish(self, event: BridgeEvent) -> None:
        for subscription in self._subscribers.copy():
            subscription.push(event)

    def broadcast_state(self, payload: StateChangePayload) -> None:
        """Retain ``payload`` as the last known state and publish it."""
        self._context.last_payload = payload
        self.publish(state_change_event(payload))

    def broadcast_ramping(self, ramping: bool) -> None:
        self.publish(BridgeEvent(event=BridgeEventName.RAMPING_STATE, data=ramping))

    def close(self) -> None:
        """End every subscriber stream. The last payload is kept."""
        for subscription in self._subscribers.copy():
            subscription.close()
        self._subscribers.clear()


def state_change_event(payload: StateChangePayload) -> BridgeEvent:
    return BridgeEvent(event=BridgeEventName.STATE_CHANGE, data=payload.to_wire())
