from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from broker_client.channel import ControlChannel, ReadyState
from broker_client.sanitise import sanitise


@dataclass(frozen=True)
class HealthSnapshot:
    connection_open: bool
    broker_server_url: str | None
    version: str

    @property
    def ok(self) -> bool:
        return self.connection_open

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "websocketConnectionOpen": self.connection_open,
            "brokerServerUrl": self.broker_server_url,
            "version": self.version,
        }


class ConnectionHealthMonitor:
    def __init__(
        self,
        channel: ControlChannel,
        version: str,
        secrets: Mapping[str, str] | None = None,
    ) -> None:
        self._channel = channel
        self._version = version
        self._secrets = secrets

    def snapshot(self) -> HealthSnapshot:
        # Only an exactly OPEN channel counts; anything else is not connected.
        is_open = self._channel.ready_state == ReadyState.OPEN
        return HealthSnapshot(
            connection_open=is_open,
            broker_server_url=sanitise(self._channel.url, self._secrets),
            version=self._version,
        )
