"""
Recording pipeline orchestrator.

Owns the session state and the processed ledger, runs the detector on each
poll tick, and launches a convert-then-upload chain on a background thread
whenever a recording session ends.  Sessions are independent: a slow or
failing pipeline never blocks the next tick or another session.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Any

from rec_relay.converter import Converter
from rec_relay.detector import (
    ActiveSession,
    SessionEvent,
    SessionLost,
    SessionStarted,
    SessionStopped,
    detect,
)
from rec_relay.ledger import ProcessedLedger
from rec_relay.snapshot import SnapshotReader
from rec_relay.uploader import DriveUploader, mime_type_for_original

logger = logging.getLogger(__name__)
alerts = logging.getLogger("rec_relay.alerts")

# Only this many lost filenames are kept for /status; lostCount has the total
MAX_LOST_REPORTED = 50


class RecordingPipeline:
    """
    Detector -> Conversion -> Upload, driven one tick at a time.

    All state mutation happens inside :meth:`tick`, which must only be
    called from a single thread (the poll loop).  Background pipelines only
    receive the path they should work on.

    Parameters
    ----------
    reader : SnapshotReader
        Lists the recording files each tick.
    converter : Converter
        Remuxes a finished recording.
    uploader : DriveUploader
        Best-effort remote sink.
    ledger : ProcessedLedger
        Filenames already handed to the pipeline.
    growth_window : float
        Seconds since the last write for which a file still counts as growing.
    clock : callable
        Returns the current time in seconds (``time.time`` by default).
    """

    def __init__(
        self,
        reader: SnapshotReader,
        converter: Converter,
        uploader: DriveUploader,
        ledger: ProcessedLedger | None = None,
        growth_window: float = 5.0,
        clock: Callable[[], float] = time.time,
    ):
        self._reader = reader
        self._converter = converter
        self._uploader = uploader
        self._ledger = ledger if ledger is not None else ProcessedLedger()
        self._growth_window_ms = growth_window * 1000
        self._clock = clock
        self._active: ActiveSession | None = None
        self._workers: dict[str, threading.Thread] = {}
        self._workers_lock = threading.Lock()
        self._lost: deque[str] = deque(maxlen=MAX_LOST_REPORTED)
        self._lost_count = 0
        self._last_contested: tuple[str, ...] = ()

    # ---- status ----

    @property
    def active_session(self) -> ActiveSession | None:
        return self._active

    @property
    def ledger(self) -> ProcessedLedger:
        return self._ledger

    @property
    def lost_sessions(self) -> list[str]:
        """The most recent lost recordings, oldest first."""
        return list(self._lost)

    @property
    def in_flight(self) -> list[str]:
        """Filenames whose convert/upload chain is still running."""
        with self._workers_lock:
            return [name for name, t in self._workers.items() if t.is_alive()]

    def status(self) -> dict[str, Any]:
        active = self._active
        return {
            "isRecording": active is not None,
            "remoteSinkEnabled": self._uploader.enabled,
            "activeFile": active.filename if active else None,
            "processedCount": len(self._ledger),
            "inFlight": self.in_flight,
            "lostSessions": self.lost_sessions,
            "lostCount": self._lost_count,
        }

    # ---- polling ----

    def tick(self, now: float | None = None) -> SessionEvent | None:
        """Take one snapshot, advance the detector and act on its event."""
        now_ms = (self._clock() if now is None else now) * 1000
        snapshot = self._reader.read()
        detection = detect(self._active, snapshot, now_ms, self._growth_window_ms)
        self._active = detection.active
        self._flag_contested(detection.growing)
        self._prune_workers()

        event = detection.event
        if isinstance(event, SessionStarted):
            logger.info("Recording started: %s", event.filename)
        elif isinstance(event, SessionStopped):
            logger.info("Recording stopped: %s", event.filename)
            self.handle_stop(event)
        elif isinstance(event, SessionLost):
            self._handle_lost(event)
        return event

    def handle_stop(self, event: SessionStopped) -> threading.Thread | None:
        """Ledger the stopped recording and launch its pipeline."""
        if event.filename in self._ledger:
            logger.info("%s was already processed; ignoring.", event.filename)
            return None
        self._ledger.add(event.filename)

        worker = threading.Thread(
            target=self._run_session,
            args=(event.filename, event.path),
            daemon=True,
            name=f"Pipeline-{event.filename}",
        )
        with self._workers_lock:
            self._workers[event.filename] = worker
        worker.start()
        return worker

    def join(self, timeout: float | None = None) -> list[str]:
        """Wait for in-flight pipelines.  Returns those still running."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._workers_lock:
            workers = list(self._workers.items())
        for name, worker in workers:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            worker.join(remaining)
        stragglers = [name for name, worker in workers if worker.is_alive()]
        for name in stragglers:
            logger.warning("Pipeline for %s still running at shutdown; abandoning it.", name)
        return stragglers

    # ---- internals ----

    def _run_session(self, filename: str, path: Path) -> None:
        try:
            conversion = self._converter.convert(path)
            if conversion.success:
                upload_path, mime_type = conversion.output, None
            else:
                logger.warning(
                    "Conversion failed for %s (%s); uploading the original.",
                    filename, conversion.error,
                )
                upload_path, mime_type = path, mime_type_for_original(path)
            self._uploader.upload(upload_path, mime_type=mime_type)
        except Exception:
            logger.exception("Pipeline error for %s", filename)
        else:
            logger.info("Pipeline finished for %s", filename)

    def _handle_lost(self, event: SessionLost) -> None:
        self._lost.append(event.filename)
        self._lost_count += 1
        alerts.error(
            "LOST RECORDING: %s disappeared before it could be processed; "
            "it was not converted or uploaded.",
            event.filename,
        )

    def _flag_contested(self, growing: tuple[str, ...]) -> None:
        if len(growing) > 1 and growing != self._last_contested:
            logger.warning(
                "%d files are growing at once (%s); tracking only %s.",
                len(growing),
                ", ".join(growing),
                self._active.filename if self._active else growing[0],
            )
        self._last_contested = growing if len(growing) > 1 else ()

    def _prune_workers(self) -> None:
        with self._workers_lock:
            for name in [n for n, t in self._workers.items() if not t.is_alive()]:
                del self._workers[name]
