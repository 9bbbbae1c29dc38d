"""Fake collaborators for the pipeline tests."""

from __future__ import annotations

import threading
from pathlib import Path

from rec_relay.converter import ConversionResult
from rec_relay.snapshot import RecordingFileInfo
from rec_relay.uploader import UploadResult


def make_info(folder: Path, name: str, size: int, modified_at_s: float) -> RecordingFileInfo:
    return RecordingFileInfo(
        name=name,
        path=folder / name,
        size_bytes=size,
        modified_at_ms=modified_at_s * 1000,
    )


class FakeReader:
    """Snapshot reader whose listing the test sets directly."""

    def __init__(self) -> None:
        self.files: list[RecordingFileInfo] = []

    def read(self) -> list[RecordingFileInfo]:
        return list(self.files)


class FakeConverter:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[Path] = []
        self._lock = threading.Lock()

    def convert(self, source: Path) -> ConversionResult:
        with self._lock:
            self.calls.append(source)
        if self.fail:
            return ConversionResult(source=source, returncode=1, error="ffmpeg exited with code 1")
        return ConversionResult(source=source, output=source.with_suffix(".mp4"), returncode=0)


class FakeUploader:
    """Records uploads; optionally blocks each one until ``gate`` is set."""

    def __init__(self, enabled: bool = True, gate: threading.Event | None = None) -> None:
        self._enabled = enabled
        self.gate = gate
        self.calls: list[tuple[Path, str | None]] = []
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def upload(self, path: Path, mime_type: str | None = None) -> UploadResult | None:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        with self._lock:
            self.calls.append((path, mime_type))
        return UploadResult(id=f"id-{path.name}", name=path.name)

