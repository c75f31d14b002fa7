"""Change detection between consecutive broadcast payloads."""

from spotify_bridge.models import StateChangePayload


def should_broadcast(previous: StateChangePayload | None, current: StateChangePayload) -> bool:
    """Return True when ``current`` differs from the last broadcast payload.

    Comparison is field by field and exact, including float positions: both
    sides come out of the same normalization so equal snapshots compare equal.
    """
    if previous is None:
        return True
    return previous.to_wire() != current.to_wire()
