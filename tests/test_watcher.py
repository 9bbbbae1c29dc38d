"""Tests for the poll loop."""

from __future__ import annotations

import threading

from rec_relay.watcher import RecordingWatcher


class _CountingPipeline:
    def __init__(self, fail_first: bool = False) -> None:
        self.ticks = 0
        self.fail_first = fail_first
        self.reached = threading.Event()

    def tick(self) -> None:
        self.ticks += 1
        if self.ticks >= 3:
            self.reached.set()
        if self.fail_first and self.ticks == 1:
            raise RuntimeError("snapshot failed")


def test_watcher_ticks_until_stopped() -> None:
    pipeline = _CountingPipeline()
    watcher = RecordingWatcher(pipeline, interval=0.01)  # type: ignore[arg-type]

    watcher.start()
    assert watcher.is_running
    assert pipeline.reached.wait(timeout=5)
    watcher.stop()

    assert not watcher.is_running
    assert pipeline.ticks >= 3


def test_tick_errors_do_not_stop_the_loop() -> None:
    pipeline = _CountingPipeline(fail_first=True)
    watcher = RecordingWatcher(pipeline, interval=0.01)  # type: ignore[arg-type]

    watcher.start()
    try:
        assert pipeline.reached.wait(timeout=5)
    finally:
        watcher.stop()
