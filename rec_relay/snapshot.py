"""Directory snapshot reader.

Lists the recording files in the watched folder on every poll tick,
using watchdog's ``DirectorySnapshot`` to walk and stat the folder.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from watchdog.utils.dirsnapshot import DirectorySnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordingFileInfo:
    """One recording file as seen during a single poll tick."""
    name: str
    path: Path
    size_bytes: int
    modified_at_ms: float


class SnapshotReader:
    """Reads the current set of recording files in *folder*.

    Only regular files directly inside the folder whose extension matches
    *extension* (case-insensitive) are returned, sorted by name so that
    "listing order" is stable from one tick to the next.
    """

    def __init__(self, folder: str | Path, extension: str):
        self.folder = Path(folder)
        self._suffix = "." + extension.lower().lstrip(".")

    def read(self) -> list[RecordingFileInfo]:
        """Return the recording files currently in the folder.

        A missing folder is not an error: the recorder may simply not have
        created it yet.
        """
        if not self.folder.is_dir():
            logger.debug("Recordings folder %s does not exist yet", self.folder)
            return []
        try:
            snapshot = DirectorySnapshot(str(self.folder), recursive=False)
        except FileNotFoundError:
            # Removed between the is_dir() check and the walk
            return []

        root = os.path.normpath(str(self.folder))
        files = []
        for raw_path in snapshot.paths:
            if os.path.normpath(raw_path) == root:
                continue
            st = snapshot.stat_info(raw_path)
            if not stat.S_ISREG(st.st_mode):
                continue
            path = Path(raw_path)
            if path.suffix.lower() != self._suffix:
                continue
            files.append(
                RecordingFileInfo(
                    name=path.name,
                    path=path,
                    size_bytes=st.st_size,
                    modified_at_ms=st.st_mtime_ns / 1_000_000,
                )
            )
        files.sort(key=lambda info: info.name)
        return files
