import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from broker_client.api_schemas import (
    HealthResponse,
    SystemcheckErrorResponse,
    SystemcheckResponse,
)
from broker_client.channel import ControlChannel, Relay, WebServer
from broker_client.config import Settings, settings
from broker_client.health import ConnectionHealthMonitor
from broker_client.reporting import StatusReporter, render_status_page
from broker_client.version import __version__

logger = logging.getLogger(__name__)

RELAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@dataclass
class BrokerClient:
    app: FastAPI
    channel: ControlChannel
    reporter: StatusReporter
    server: Optional[WebServer] = None

    def close(self, done: Optional[Callable[[], None]] = None) -> None:
        logger.info("client websocket is closing")
        if self.server is not None:
            self.server.close()

        def _closed() -> None:
            logger.info("client websocket is closed")
            if done:
                done()

        self.channel.destroy(_closed)


def create_app(
    channel: ControlChannel,
    reporter: StatusReporter,
    relay: Optional[Relay] = None,
    filters: Optional[Mapping[str, Any]] = None,
    config: Settings = settings,
) -> FastAPI:
    app = FastAPI(
        title="Broker Client",
        version=__version__,
        description=(
            "Broker client status surface: control channel health, "
            "downstream systemcheck, and a human-readable status page. "
            "All other paths are relayed to the broker server."
        ),
    )

    @app.get(
        config.BROKER_HEALTHCHECK_PATH,
        response_model=HealthResponse,
        responses={500: {"model": HealthResponse}},
        tags=["system"],
        summary="Healthcheck",
        description="200 while the broker server connection is open, 500 otherwise.",
    )
    def healthcheck():
        snapshot = reporter.liveness()
        status_code = 200 if snapshot.connection_open else 500
        return JSONResponse(status_code=status_code, content=snapshot.to_dict())

    @app.get(
        config.BROKER_SYSTEMCHECK_PATH,
        response_model=SystemcheckResponse,
        responses={500: {"model": SystemcheckErrorResponse}},
        tags=["system"],
        summary="Systemcheck",
        description=(
            "Checks reachability of, and credentials for, the service proxied "
            "by this client. A failed check is still a 200 with ok=false."
        ),
    )
    async def systemcheck():
        validation = reporter.validation_config()
        try:
            _, outcome = await reporter.systemcheck(validation)
        except Exception as exc:
            error = reporter.sanitise(str(exc))
            logger.error("Systemcheck could not run: %s", error)
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": error, "config": validation.to_dict()},
            )
        return JSONResponse(
            status_code=200, content={**validation.to_dict(), **outcome.to_dict()}
        )

    @app.get(
        config.BROKER_STATUS_PATH,
        response_class=HTMLResponse,
        tags=["system"],
        summary="Status Page",
        description="Human-readable connection status and sanitized configuration.",
    )
    async def status():
        model = await reporter.status_page()
        return HTMLResponse(content=render_status_page(model))

    # Must stay last: the catch-all would shadow the routes above.
    if relay is not None:
        handler = relay.request((filters or {}).get("public"))

        @app.api_route("/{path:path}", methods=RELAY_METHODS, include_in_schema=False)
        async def relay_request(request: Request):
            request.state.channel = channel
            return await handler(request)

    return app


def create_client(
    channel: ControlChannel,
    relay: Optional[Relay] = None,
    filters: Optional[Mapping[str, Any]] = None,
    config: Settings = settings,
    server: Optional[WebServer] = None,
) -> BrokerClient:
    logger.info("running in client mode (version %s)", __version__)
    monitor = ConnectionHealthMonitor(
        channel, version=__version__, secrets=config.secrets()
    )
    reporter = StatusReporter(monitor, config=config)
    app = create_app(channel, reporter, relay=relay, filters=filters, config=config)
    return BrokerClient(app=app, channel=channel, reporter=reporter, server=server)
