from __future__ import annotations

from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = Field(description="True when the broker server connection is open")
    websocket_connection_open: bool = Field(alias="websocketConnectionOpen")
    broker_server_url: str | None = Field(default=None, alias="brokerServerUrl")
    version: str


class SystemcheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    error: str | None = None
    broker_client_validation_url: str | None = Field(
        default=None, alias="brokerClientValidationUrl"
    )
    broker_client_validation_method: str = Field(alias="brokerClientValidationMethod")
    broker_client_validation_timeout_ms: int = Field(
        alias="brokerClientValidationTimeoutMs"
    )
    broker_client_validation_url_status_code: int | None = Field(
        default=None, alias="brokerClientValidationUrlStatusCode"
    )


class SystemcheckErrorResponse(BaseModel):
    ok: bool = False
    error: str
    config: dict[str, Any]
