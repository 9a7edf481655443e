from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any

from broker_client.checks.results import ValidationOutcome
from broker_client.checks.validation import (
    ValidationConfig,
    resolve_validation_config,
    run_validation,
)
from broker_client.config import Settings, settings
from broker_client.health import ConnectionHealthMonitor, HealthSnapshot
from broker_client.sanitise import sanitise

logger = logging.getLogger(__name__)

REGISTRY_ROW_LABEL = "Registry connection status"
SCM_ROW_LABEL = "SCM connection status"


@dataclass(frozen=True)
class StatusPageModel:
    health: HealthSnapshot
    validation: ValidationConfig
    outcome: ValidationOutcome

    def configuration(self) -> dict[str, Any]:
        """Every sanitized key/value pair shown in the configuration table."""
        combined = self.validation.to_dict()
        combined["brokerServerUrl"] = self.health.broker_server_url
        combined["version"] = self.health.version
        return combined


class StatusReporter:
    def __init__(self, monitor: ConnectionHealthMonitor, config: Settings = settings) -> None:
        self._monitor = monitor
        self._config = config

    def sanitise(self, value: Any) -> str | None:
        return sanitise(value, self._config.secrets())

    def liveness(self) -> HealthSnapshot:
        return self._monitor.snapshot()

    def validation_config(self) -> ValidationConfig:
        return resolve_validation_config(self._config)

    async def systemcheck(
        self, validation: ValidationConfig | None = None
    ) -> tuple[ValidationConfig, ValidationOutcome]:
        if validation is None:
            validation = self.validation_config()
        outcome = await run_validation(validation, self._config)
        return validation, outcome

    async def status_page(self) -> StatusPageModel:
        health = self.liveness()
        validation = self.validation_config()
        try:
            _, outcome = await self.systemcheck(validation)
        except Exception as exc:
            error = self.sanitise(str(exc))
            logger.error("Systemcheck could not run for status page: %s", error)
            outcome = ValidationOutcome.failure(error)
        return StatusPageModel(health=health, validation=validation, outcome=outcome)


def _ok_label(ok: bool) -> str:
    return "OK" if ok is True else "NOT OK"


def _cell(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def render_status_page(model: StatusPageModel) -> str:
    rows = [
        (REGISTRY_ROW_LABEL, _ok_label(model.health.ok)),
        (SCM_ROW_LABEL, _ok_label(model.outcome.ok)),
    ]
    status_rows = "\n".join(
        f"      <tr><td>{_cell(label)}</td><td>{_cell(value)}</td></tr>"
        for label, value in rows
    )
    config_rows = "\n".join(
        f"      <tr><td>{_cell(key)}</td><td>{_cell(value)}</td></tr>"
        for key, value in model.configuration().items()
    )

    errors = ""
    if not model.outcome.ok and model.outcome.error:
        errors = f"    <h2>Errors</h2>\n    <code>{_cell(model.outcome.error)}</code>\n"

    return (
        "<html>\n"
        "  <body>\n"
        "    <h1>Broker Status Page</h1>\n"
        "    <table>\n"
        f"{status_rows}\n"
        "    </table>\n"
        f"{errors}"
        "    <h2>Configuration</h2>\n"
        "    <table>\n"
        f"{config_rows}\n"
        "    </table>\n"
        "  </body>\n"
        "</html>\n"
    )
