"""Poll loop for Recording Relay.

Drives the recording pipeline from a single daemon thread at a fixed
interval.  Every tick runs synchronously on this thread; conversion and
upload run on their own threads, so a slow pipeline never delays a tick.
"""

from __future__ import annotations

import logging
import threading

from rec_relay.pipeline import RecordingPipeline

logger = logging.getLogger(__name__)


class RecordingWatcher:
    """Calls ``pipeline.tick()`` every *interval* seconds.

    Usage:
        watcher = RecordingWatcher(pipeline, interval=3)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, pipeline: RecordingPipeline, interval: float = 3.0):
        self._pipeline = pipeline
        self._interval = max(0.1, interval)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    # ---- lifecycle ----

    def start(self) -> None:
        """Start polling on a background thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._poll, daemon=True, name="RecordingWatcher"
        )
        self._thread.start()
        logger.info("Polling every %.1fs", self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop polling.  In-flight pipelines are not affected."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Watcher stopped.")

    @property
    def is_running(self) -> bool:
        """Return whether the poll thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def _poll(self) -> None:
        while not self._stop.is_set():
            try:
                self._pipeline.tick()
            except Exception:
                logger.exception("Error during poll tick")
            self._stop.wait(timeout=self._interval)
