from __future__ import annotations

import asyncio
import base64
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any

import requests

from broker_client.checks.results import ValidationOutcome
from broker_client.config import Settings, settings
from broker_client.sanitise import sanitise
from broker_client.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"
DEFAULT_TIMEOUT_MS = 5000
INVALID_CREDENTIALS_MESSAGE = "Failed due to invalid credentials"
BAD_STATUS_MESSAGE = "Status code is not 2xx"
BODY_SNIPPET_CHARS = 240


class ValidationError(RuntimeError):
    pass


class ValidationConfigError(ValidationError):
    """The probe could not be built from the current configuration."""


class TransportError(ValidationError):
    """The target could not be reached at all."""


class StatusError(ValidationError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class CredentialError(StatusError):
    """The target answered 401 or 403."""


@dataclass(frozen=True)
class ValidationConfig:
    # Raw URL is only ever used to dial; display_url is what gets shown.
    url: str | None = field(repr=False)
    display_url: str | None
    method: str = DEFAULT_METHOD
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def to_dict(self) -> dict[str, Any]:
        return {
            "brokerClientValidationUrl": self.display_url,
            "brokerClientValidationMethod": self.method,
            "brokerClientValidationTimeoutMs": self.timeout_ms,
        }


def resolve_validation_config(config: Settings = settings) -> ValidationConfig:
    url = config.BROKER_CLIENT_VALIDATION_URL or None
    method = (config.BROKER_CLIENT_VALIDATION_METHOD or DEFAULT_METHOD).upper()
    timeout_ms = config.BROKER_CLIENT_VALIDATION_TIMEOUT_MS
    if timeout_ms is None:
        timeout_ms = DEFAULT_TIMEOUT_MS
    return ValidationConfig(
        url=url,
        display_url=sanitise(url, config.secrets()),
        method=method,
        timeout_ms=int(timeout_ms),
    )


def _check_header_value(name: str, value: str) -> None:
    # http.client sends header values as latin-1 and rejects line breaks.
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        raise ValidationConfigError(
            f"{name} contains characters that cannot be sent in an HTTP header"
        ) from None
    if "\r" in value or "\n" in value:
        raise ValidationConfigError(f"{name} must not contain line breaks")


def build_validation_headers(config: Settings = settings) -> dict[str, str]:
    headers = {"user-agent": f"Broker client {__version__}"}
    if config.BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER:
        _check_header_value(
            "BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER",
            config.BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER,
        )
        headers["authorization"] = config.BROKER_CLIENT_VALIDATION_AUTHORIZATION_HEADER
    elif config.BROKER_CLIENT_VALIDATION_BASIC_AUTH:
        encoded = base64.b64encode(
            config.BROKER_CLIENT_VALIDATION_BASIC_AUTH.encode("utf-8")
        ).decode("ascii")
        headers["authorization"] = f"Basic {encoded}"
    return headers


def _tls_verify(config: Settings) -> str | bool:
    if not config.CA_CERT:
        return True
    if not os.path.isfile(config.CA_CERT):
        raise ValidationConfigError(f"CA certificate not found: {config.CA_CERT}")
    return config.CA_CERT


def _read_snippet(
    resp: requests.Response, deadline: float, cancelled: threading.Event
) -> str:
    # One byte per read so a slow sender cannot hold the socket past the deadline.
    body = bytearray()
    try:
        for chunk in resp.iter_content(chunk_size=1):
            if cancelled.is_set() or time.monotonic() >= deadline:
                break
            body.extend(chunk)
            if len(body) >= BODY_SNIPPET_CHARS:
                break
    except requests.RequestException as exc:
        logger.debug("Stopped reading systemcheck response body: %s", exc)
    return bytes(body).decode(resp.encoding or "utf-8", errors="replace")


def _send(
    validation: ValidationConfig,
    headers: dict[str, str],
    verify: str | bool,
    deadline: float,
    cancelled: threading.Event,
) -> tuple[int, str]:
    """Blocking request, run in a worker thread; always closes the response."""
    timeout_s = validation.timeout_ms / 1000
    resp = requests.request(
        validation.method,
        validation.url,
        headers=headers,
        timeout=(timeout_s, timeout_s),
        verify=verify,
        stream=True,
    )
    try:
        if 200 <= resp.status_code < 300:
            return resp.status_code, ""
        return resp.status_code, _read_snippet(resp, deadline, cancelled)
    finally:
        resp.close()


async def _probe(
    validation: ValidationConfig,
    headers: dict[str, str],
    verify: str | bool,
    secrets: dict[str, str],
) -> ValidationOutcome:
    if not validation.url:
        raise TransportError("Validation URL is not configured")

    timeout_s = validation.timeout_ms / 1000
    deadline = time.monotonic() + timeout_s
    cancelled = threading.Event()
    try:
        status_code, body = await asyncio.wait_for(
            asyncio.to_thread(_send, validation, headers, verify, deadline, cancelled),
            timeout=timeout_s,
        )
    except asyncio.TimeoutError as exc:
        cancelled.set()
        raise TransportError(
            f"Validation request timed out after {validation.timeout_ms}ms"
        ) from exc
    except requests.RequestException as exc:
        message = f"{exc.__class__.__name__}: {exc}".replace(
            validation.url, validation.display_url or ""
        )
        raise TransportError(sanitise(message, secrets)) from exc

    if not 200 <= status_code < 300:
        logger.error(
            "Systemcheck failed: status_code=%s body=%s",
            status_code,
            sanitise(body.replace("\n", "\\n"), secrets),
        )
        if status_code in (401, 403):
            raise CredentialError(INVALID_CREDENTIALS_MESSAGE, status_code)
        raise StatusError(BAD_STATUS_MESSAGE, status_code)

    return ValidationOutcome.success(status_code)


async def run_validation(
    validation: ValidationConfig, config: Settings = settings
) -> ValidationOutcome:
    """
    Issue the systemcheck request once and classify what came back.

    Probe failures resolve to a failed outcome. ValidationConfigError is the
    only exception that escapes, when the request cannot be built at all.
    """
    if validation.timeout_ms <= 0:
        raise ValidationConfigError(
            f"Validation timeout must be positive, got {validation.timeout_ms}ms"
        )
    headers = build_validation_headers(config)
    verify = _tls_verify(config)
    secrets = config.secrets()

    try:
        return await _probe(validation, headers, verify, secrets)
    except StatusError as exc:
        logger.error("Validation request failed: %s", exc)
        return ValidationOutcome.failure(str(exc), status_code=exc.status_code)
    except TransportError as exc:
        logger.error("Validation request failed: %s", exc)
        return ValidationOutcome.failure(str(exc))
