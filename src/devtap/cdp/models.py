"""Observed CDP events.

Events are kept close to the wire: method name plus the raw params dict.
"""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class CDPEvent:
    """Immutable record of something the browser reported.

    Attributes:
        method: CDP event name (e.g. "Network.responseReceived").
        params: Event params, read-only.
        session_id: Flattened session id when the event was routed through one.
        received_at: Local wall clock time the message was parsed.
    """

    method: str
    params: Mapping[str, Any] = field(default_factory=dict)
    session_id: str | None = None
    received_at: float = field(default_factory=time.time)

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def domain(self) -> str:
        """Domain part of the method, e.g. "Network"."""
        return self.method.split(".", 1)[0]

    def get(self, key: str, default: Any = None) -> Any:
        """Shortcut for params.get()."""
        return self.params.get(key, default)

    def to_message(self) -> dict:
        """Plain CDP message dict, as it arrived on the socket."""
        message: dict[str, Any] = {"method": self.method, "params": dict(self.params)}
        if self.session_id:
            message["sessionId"] = self.session_id
        return message

    @classmethod
    def from_message(cls, data: dict) -> "CDPEvent":
        """Build from a parsed CDP event message."""
        return cls(method=data["method"], params=data.get("params", {}), session_id=data.get("sessionId"))


__all__ = ["CDPEvent"]
