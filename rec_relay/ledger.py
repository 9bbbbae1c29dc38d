"""Processed-recordings ledger.

An append-only set of recording filenames that have already been handed to
the conversion/upload pipeline.  When given a path, the set is loaded at
startup and rewritten after every insertion so a restart does not re-upload
recordings that were finished before it.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class ProcessedLedger:
    """Filenames already handed to the pipeline.

    Parameters
    ----------
    path : Path, optional
        JSON file backing the ledger.  ``None`` keeps the ledger in memory
        only, for the lifetime of the process.
    """

    def __init__(self, path: Path | None = None):
        self._path = path
        # filename -> unix timestamp it was added
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()
        if path is not None:
            self._entries = self._load(path)

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def persistent(self) -> bool:
        return self._path is not None

    def __contains__(self, filename: object) -> bool:
        return filename in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, filename: str) -> bool:
        """Record *filename*.  Returns False if it was already present."""
        with self._lock:
            if filename in self._entries:
                return False
            self._entries[filename] = time.time()
            self._save()
        return True

    @property
    def filenames(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    # ---- persistence ----

    @staticmethod
    def _load(path: Path) -> dict[str, float]:
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read ledger %s (%s); starting empty.", path, exc)
            return {}

        if isinstance(data, list):
            # Bare list of filenames
            data = {name: 0.0 for name in data}
        if not isinstance(data, dict) or not all(isinstance(k, str) for k in data):
            logger.warning("Ledger %s has an unexpected layout; starting empty.", path)
            return {}
        entries = {}
        for name, stamp in data.items():
            entries[name] = float(stamp) if isinstance(stamp, (int, float)) else 0.0
        logger.info("Loaded %d processed recording(s) from %s", len(entries), path)
        return entries

    def _save(self) -> None:
        """Write the ledger atomically if it has a file.  Caller holds the lock."""
        if self._path is None:
            return
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(self._entries, fh, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            # The in-memory entry still guards this process
            logger.error("Failed to persist ledger to %s: %s", self._path, exc)
            tmp_path.unlink(missing_ok=True)
