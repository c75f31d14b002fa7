"""Event envelopes exchanged over the event transports."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class BridgeEventName(str, Enum):
    """Server-to-client event names."""

    VERSION = "version"
    CONTROL_STATUS = "control_status"
    STATE_CHANGE = "state_change"
    RAMPING_STATE = "ramping_state"
    COMMAND_REJECTED = "command_rejected"
    COMMAND_ERROR = "command_error"


class BridgeEvent(BaseModel):
    """A single server-to-client event."""

    event: BridgeEventName
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.data}


class ClientCommand(BaseModel):
    """A client-to-server command frame: ``{"event": "setVolume", "args": [40]}``."""

    event: str = Field(min_length=1)
    args: list[Any] = Field(default_factory=list)
    data: Any = None

    @property
    def arguments(self) -> list[Any]:
        """Positional arguments, accepting a single ``data`` value as shorthand."""
        if self.args:
            return self.args
        if self.data is None:
            return []
        return self.data if isinstance(self.data, list) else [self.data]
