"""Session detection.

Turns successive directory snapshots into start/stop events for a single
recording session.  The recorder gives no explicit "finished" signal, so a
file counts as being recorded while its modification time is recent and it
has content; once nothing is growing, the active session is over.

``detect`` is a pure function of the previous session, the snapshot and the
current time.  It never touches the clock or the filesystem, and it never
commits anything: the caller decides what to do with the proposed state.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from rec_relay.snapshot import RecordingFileInfo


@dataclass(frozen=True)
class ActiveSession:
    filename: str
    started_at_ms: float


@dataclass(frozen=True)
class SessionStarted:
    filename: str


@dataclass(frozen=True)
class SessionStopped:
    filename: str
    path: Path


@dataclass(frozen=True)
class SessionLost:
    """The active file disappeared before its stop could be resolved."""
    filename: str


SessionEvent = Union[SessionStarted, SessionStopped, SessionLost]


@dataclass(frozen=True)
class Detection:
    """Outcome of one detector step."""
    active: ActiveSession | None
    event: SessionEvent | None
    growing: tuple[str, ...] = ()


def is_growing(info: RecordingFileInfo, now_ms: float, growth_window_ms: float) -> bool:
    """Return True if *info* looks like it is still being written."""
    return (now_ms - info.modified_at_ms) < growth_window_ms and info.size_bytes > 0


def detect(
    active: ActiveSession | None,
    snapshot: Sequence[RecordingFileInfo],
    now_ms: float,
    growth_window_ms: float,
) -> Detection:
    """Advance the session state machine by one snapshot.

    - IDLE and something is growing: start a session on the first growing
      file in listing order.
    - RECORDING and nothing is growing: stop the session, or report it lost
      if its file is no longer in the snapshot.
    - Anything else: no change.
    """
    growing = [info for info in snapshot if is_growing(info, now_ms, growth_window_ms)]
    growing_names = tuple(info.name for info in growing)

    if active is None:
        if not growing:
            return Detection(None, None, growing_names)
        candidate = growing[0]
        return Detection(
            ActiveSession(candidate.name, now_ms),
            SessionStarted(candidate.name),
            growing_names,
        )

    if growing:
        return Detection(active, None, growing_names)

    for info in snapshot:
        if info.name == active.filename:
            return Detection(None, SessionStopped(info.name, info.path), growing_names)
    return Detection(None, SessionLost(active.filename), growing_names)
