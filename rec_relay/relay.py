"""Live telemetry relay.

One producer publishes telemetry records over a WebSocket; any number of
viewers receive them.  A viewer that connects late gets the last-known
record immediately, then every later record verbatim and in arrival order.
Nothing else is buffered.

Each viewer has its own bounded queue.  ``publish`` only enqueues, so the
producer never waits on a viewer; ``deliver`` drains one viewer's queue
onto its socket.  A viewer that falls ``max_pending`` records behind is
dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

ROLE_PRODUCER = "producer"
ROLE_VIEWER = "viewer"

DEFAULT_MAX_PENDING = 256


class TextSender(Protocol):
    async def send_text(self, data: str) -> None: ...


class TelemetryHub:
    """Fan-out of producer records to connected viewers.

    Only ever used from the server's event loop, so no locking is needed.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._queues: dict[TextSender, asyncio.Queue[Optional[str]]] = {}
        self._last: str | None = None
        self._max_pending = max(1, max_pending)

    @property
    def last_record(self) -> str | None:
        return self._last

    @property
    def viewer_count(self) -> int:
        return len(self._queues)

    def subscribe(self, viewer: TextSender) -> None:
        """Register *viewer* and queue the last-known record, if any.

        Registration and queueing happen without yielding, so no record
        published afterwards can be missed.
        """
        queue: asyncio.Queue[Optional[str]] = asyncio.Queue(self._max_pending + 1)
        if self._last is not None:
            queue.put_nowait(self._last)
        self._queues[viewer] = queue
        logger.info("Viewer connected (%d total)", len(self._queues))

    def unsubscribe(self, viewer: TextSender) -> None:
        """Stop queueing for *viewer*; records already queued still go out."""
        queue = self._queues.pop(viewer, None)
        if queue is not None:
            _close(queue)
            logger.info("Viewer disconnected (%d remaining)", len(self._queues))

    def publish(self, record: str) -> int:
        """Store *record* as the last-known one and queue it for every viewer.

        Returns the number of viewers it was queued for.
        """
        self._last = record
        queued = 0
        for viewer, queue in list(self._queues.items()):
            if queue.qsize() >= self._max_pending:
                logger.warning(
                    "Dropping viewer %d records behind", self._max_pending
                )
                del self._queues[viewer]
                _close(queue, discard=True)
                continue
            queue.put_nowait(record)
            queued += 1
        return queued

    async def deliver(self, viewer: TextSender) -> None:
        """Send *viewer*'s queued records until it is unsubscribed or fails."""
        queue = self._queues.get(viewer)
        if queue is None:
            return
        while True:
            record = await queue.get()
            if record is None:
                return
            try:
                await viewer.send_text(record)
            except Exception as exc:
                logger.debug("Dropping viewer after failed send: %s", exc)
                self.unsubscribe(viewer)
                return


def _close(queue: asyncio.Queue[Optional[str]], discard: bool = False) -> None:
    # None is the end-of-stream marker for deliver()
    if discard:
        while not queue.empty():
            queue.get_nowait()
    queue.put_nowait(None)
