"""
Cross-platform utilities for Recording Relay.

Centralises all OS-detection logic so every other module can import
a single canonical set of helpers rather than scattering ``sys.platform``
checks throughout the codebase.

The relay normally runs headless on Linux (often in a container), but the
directory helpers also resolve sensibly on Windows and macOS for local
development.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# ---- platform flags ----------------------------------------------------

IS_WINDOWS: bool = sys.platform == "win32"
IS_MACOS: bool = sys.platform == "darwin"
IS_LINUX: bool = sys.platform.startswith("linux")

_APP_DIR_NAME = "RecordingRelay"

# ---- directories -------------------------------------------------------


def get_config_dir() -> Path:
    """
    Return the application config directory, created if needed.

    - Override : ``$REC_RELAY_CONFIG_DIR`` (used as-is)
    - Windows  : ``%APPDATA%\\RecordingRelay``
    - macOS    : ``~/Library/Application Support/RecordingRelay``
    - Linux    : ``$XDG_CONFIG_HOME/RecordingRelay`` (default ``~/.config``)
    """
    override = os.environ.get("REC_RELAY_CONFIG_DIR")
    if override:
        config_dir = Path(override)
    else:
        if IS_WINDOWS:
            base = os.environ.get("APPDATA", str(Path.home()))
        elif IS_MACOS:
            base = str(Path.home() / "Library" / "Application Support")
        else:
            base = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
        config_dir = Path(base) / _APP_DIR_NAME

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_path() -> Path:
    """Return the path to the log file (inside the config directory)."""
    return get_config_dir() / "rec_relay.log"


def get_ledger_path() -> Path:
    """Return the default path of the persisted processed-recordings ledger."""
    return get_config_dir() / "processed.json"
