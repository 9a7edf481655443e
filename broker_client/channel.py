from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

from fastapi import Request, Response


class ReadyState(int, Enum):
    """Lifecycle phases of the control channel, numbered like a websocket."""

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


class ControlChannel(Protocol):
    """The persistent connection to the broker server, owned elsewhere."""

    @property
    def ready_state(self) -> ReadyState: ...

    @property
    def url(self) -> str: ...

    def destroy(self, callback: Optional[Callable[[], None]] = None) -> None: ...


RelayHandler = Callable[[Request], Awaitable[Response]]


class Relay(Protocol):
    def request(self, filters: Optional[Mapping[str, Any]]) -> RelayHandler: ...


class WebServer(Protocol):
    """The listening server hosting the app; only shutdown is needed here."""

    def close(self) -> None: ...
