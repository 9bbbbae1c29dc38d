"""FastAPI application exposing the relay's status and telemetry channel."""
from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import FastAPI, WebSocket

from rec_relay import __app_name__, __version__
from rec_relay.pipeline import RecordingPipeline
from rec_relay.relay import ROLE_PRODUCER, ROLE_VIEWER, TelemetryHub
from rec_relay.watcher import RecordingWatcher

logger = logging.getLogger(__name__)


def create_app(
    pipeline: RecordingPipeline,
    *,
    watcher: RecordingWatcher | None = None,
    hub: TelemetryHub | None = None,
    shutdown_timeout: float = 30.0,
) -> FastAPI:
    """Build the HTTP/WebSocket surface around *pipeline*.

    When a *watcher* is given it is started and stopped with the app, and
    in-flight pipelines are joined (up to *shutdown_timeout*) on shutdown.
    """
    app = FastAPI(title=__app_name__, version=__version__)
    hub = hub or TelemetryHub()
    app.state.pipeline = pipeline
    app.state.hub = hub
    app.state.watcher = watcher

    @app.on_event("startup")
    async def startup() -> None:  # pragma: no cover - framework hook
        if watcher is not None:
            watcher.start()

    @app.on_event("shutdown")
    async def shutdown() -> None:  # pragma: no cover - framework hook
        if watcher is not None:
            watcher.stop()
            pipeline.join(shutdown_timeout)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/status")
    async def status() -> dict[str, object]:
        return pipeline.status()

    @app.websocket("/ws")
    async def telemetry(websocket: WebSocket, role: str = ROLE_VIEWER) -> None:
        role = role.strip().lower()
        if role not in (ROLE_PRODUCER, ROLE_VIEWER):
            await websocket.close(code=1008)
            return
        await websocket.accept()

        if role == ROLE_PRODUCER:
            logger.info("Telemetry producer connected")
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                record = message.get("text")
                if record is None:
                    logger.debug("Ignoring non-text frame from producer")
                    continue
                hub.publish(record)
            logger.info("Telemetry producer disconnected")
            return

        hub.subscribe(websocket)
        sender = asyncio.create_task(hub.deliver(websocket))
        try:
            while True:
                # Viewers only listen; anything they send is ignored
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            hub.unsubscribe(websocket)
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender

    return app
