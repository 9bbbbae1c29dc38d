"""Configuration management for Recording Relay.

Stores and retrieves settings from a JSON config file in the
platform-appropriate application data directory.
"""

import json
import logging
from pathlib import Path
from typing import Any

from rec_relay.platform_utils import (
    get_config_dir as _platform_config_dir,
)
from rec_relay.platform_utils import (
    get_ledger_path as _platform_ledger_path,
)
from rec_relay.platform_utils import (
    get_log_path as _platform_log_path,
)

logger = logging.getLogger(__name__)

DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"

DEFAULT_CONFIG: dict[str, Any] = {
    # ---- detection ----
    "recordings_dir": "/var/recordings",
    "recording_extension": "flv",
    "poll_interval_seconds": 3,
    "growth_window_seconds": 5,
    # ---- conversion ----
    "converted_extension": "mp4",
    "ffmpeg_path": "ffmpeg",
    "conversion_timeout_seconds": 0,  # 0 = wait forever
    # ---- remote sink ----
    "drive_folder_id": "",
    "upload_mime_type": "video/mp4",
    "oauth_client_path": "oauth-client.json",
    "oauth_token_path": "oauth-token.json",
    # ---- ledger ----
    "persist_ledger": True,
    "ledger_path": "",  # blank = platform default
    # ---- http ----
    "http_host": "0.0.0.0",
    "http_port": 3000,
    # ---- shutdown ----
    "shutdown_timeout_seconds": 30,
    # ---- logging ----
    "log_level": "INFO",
    "max_log_size_mb": 10,  # rotate log when it exceeds this size
    "log_backup_count": 3,  # number of rotated log files to keep
}


def get_config_dir() -> Path:
    """Return the platform-appropriate application config directory."""
    return _platform_config_dir()


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    return get_config_dir() / "config.json"


def get_log_path() -> Path:
    """Return the path to the log file."""
    return _platform_log_path()


class Config:
    """Configuration manager backed by a JSON file."""

    def __init__(self, path: Path | None = None):
        """Load config from *path*, falling back to the platform default."""
        self._path = path or get_config_path()
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    # ---- persistence ----

    def load(self) -> None:
        """Load configuration from disk, applying defaults for missing keys."""
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as fh:
                    stored = json.load(fh)
                # Merge stored values over defaults so new keys get defaults
                self._data = {**DEFAULT_CONFIG, **stored}
                logger.info("Configuration loaded from %s", self._path)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Could not read config (%s); using defaults.", exc)
                self._data = dict(DEFAULT_CONFIG)
        else:
            self._data = dict(DEFAULT_CONFIG)
            self.save()
            logger.info("Created default configuration at %s", self._path)

    def save(self) -> None:
        """Persist the current configuration to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            logger.info("Configuration saved.")
        except OSError as exc:
            logger.error("Failed to save configuration: %s", exc)

    # ---- detection ----

    @property
    def recordings_dir(self) -> str:
        """Return the folder the recorder writes into."""
        return self._data["recordings_dir"]

    @recordings_dir.setter
    def recordings_dir(self, value: str) -> None:
        self._data["recordings_dir"] = value

    @property
    def recording_extension(self) -> str:
        """Return the recording file extension (lowercase, no dot)."""
        return str(self._data["recording_extension"]).lower().strip().lstrip(".")

    @recording_extension.setter
    def recording_extension(self, value: str) -> None:
        self._data["recording_extension"] = value.lower().strip().lstrip(".")

    @property
    def poll_interval(self) -> int:
        """Return the poll interval in seconds."""
        return max(1, int(self._data["poll_interval_seconds"]))

    @poll_interval.setter
    def poll_interval(self, value: int) -> None:
        """Set the poll interval (minimum 1 s)."""
        self._data["poll_interval_seconds"] = max(1, int(value))

    @property
    def growth_window(self) -> float:
        """Return the growth window in seconds."""
        return max(1.0, float(self._data["growth_window_seconds"]))

    @growth_window.setter
    def growth_window(self, value: float) -> None:
        """Set the growth window (minimum 1 s)."""
        self._data["growth_window_seconds"] = max(1.0, float(value))

    # ---- conversion ----

    @property
    def converted_extension(self) -> str:
        """Return the extension of remuxed artifacts (lowercase, no dot)."""
        return str(self._data["converted_extension"]).lower().strip().lstrip(".")

    @converted_extension.setter
    def converted_extension(self, value: str) -> None:
        self._data["converted_extension"] = value.lower().strip().lstrip(".")

    @property
    def ffmpeg_path(self) -> str:
        return self._data.get("ffmpeg_path") or "ffmpeg"

    @ffmpeg_path.setter
    def ffmpeg_path(self, value: str) -> None:
        self._data["ffmpeg_path"] = value.strip() or "ffmpeg"

    @property
    def conversion_timeout(self) -> float | None:
        """Return the ffmpeg timeout in seconds, or None for no limit."""
        value = float(self._data.get("conversion_timeout_seconds", 0))
        return value if value > 0 else None

    @conversion_timeout.setter
    def conversion_timeout(self, value: float | None) -> None:
        self._data["conversion_timeout_seconds"] = max(0.0, float(value or 0))

    # ---- remote sink ----

    @property
    def drive_folder_id(self) -> str:
        """Return the Google Drive folder uploads are placed in."""
        return self._data.get("drive_folder_id", "")

    @drive_folder_id.setter
    def drive_folder_id(self, value: str) -> None:
        self._data["drive_folder_id"] = value.strip()

    @property
    def upload_mime_type(self) -> str:
        return self._data.get("upload_mime_type") or "video/mp4"

    @upload_mime_type.setter
    def upload_mime_type(self, value: str) -> None:
        self._data["upload_mime_type"] = value.strip() or "video/mp4"

    @property
    def oauth_client_path(self) -> Path:
        """Return the OAuth client secrets file, relative to the config dir."""
        return self._resolve(self._data.get("oauth_client_path", "oauth-client.json"))

    @oauth_client_path.setter
    def oauth_client_path(self, value: str) -> None:
        self._data["oauth_client_path"] = value

    @property
    def oauth_token_path(self) -> Path:
        """Return the stored OAuth token file, relative to the config dir."""
        return self._resolve(self._data.get("oauth_token_path", "oauth-token.json"))

    @oauth_token_path.setter
    def oauth_token_path(self, value: str) -> None:
        self._data["oauth_token_path"] = value

    # ---- ledger ----

    @property
    def persist_ledger(self) -> bool:
        """Return whether processed filenames survive restarts."""
        return bool(self._data.get("persist_ledger", True))

    @persist_ledger.setter
    def persist_ledger(self, value: bool) -> None:
        self._data["persist_ledger"] = value

    @property
    def ledger_path(self) -> Path | None:
        """Return the ledger file, or None when persistence is disabled."""
        if not self.persist_ledger:
            return None
        raw = self._data.get("ledger_path", "")
        if not raw:
            return _platform_ledger_path()
        return self._resolve(raw)

    @ledger_path.setter
    def ledger_path(self, value: str) -> None:
        self._data["ledger_path"] = value

    # ---- http ----

    @property
    def http_host(self) -> str:
        return self._data.get("http_host") or "0.0.0.0"

    @http_host.setter
    def http_host(self, value: str) -> None:
        self._data["http_host"] = value.strip()

    @property
    def http_port(self) -> int:
        return min(65535, max(1, int(self._data.get("http_port", 3000))))

    @http_port.setter
    def http_port(self, value: int) -> None:
        """Set the HTTP port (1-65535)."""
        self._data["http_port"] = min(65535, max(1, int(value)))

    # ---- shutdown ----

    @property
    def shutdown_timeout(self) -> float:
        """Return how long shutdown waits for in-flight pipelines."""
        return max(0.0, float(self._data.get("shutdown_timeout_seconds", 30)))

    @shutdown_timeout.setter
    def shutdown_timeout(self, value: float) -> None:
        self._data["shutdown_timeout_seconds"] = max(0.0, float(value))

    # ---- logging ----

    @property
    def log_level(self) -> str:
        """Return the current logging level name."""
        return self._data.get("log_level", "INFO")

    @log_level.setter
    def log_level(self, value: str) -> None:
        """Set the logging level name."""
        self._data["log_level"] = value

    @property
    def max_log_size_mb(self) -> int:
        """Return the maximum log file size in MB before rotation."""
        return max(1, int(self._data.get("max_log_size_mb", 10)))

    @max_log_size_mb.setter
    def max_log_size_mb(self, value: int) -> None:
        """Set the maximum log file size in MB (minimum 1)."""
        self._data["max_log_size_mb"] = max(1, int(value))

    @property
    def log_backup_count(self) -> int:
        """Return the number of rotated log backups to keep."""
        return max(0, int(self._data.get("log_backup_count", 3)))

    @log_backup_count.setter
    def log_backup_count(self, value: int) -> None:
        """Set the number of rotated log backups to keep."""
        self._data["log_backup_count"] = max(0, int(value))

    # ---- convenience ----

    def is_configured(self) -> bool:
        """Return True when a recordings folder and extension are set."""
        return bool(self.recordings_dir) and bool(self.recording_extension)

    def _resolve(self, raw: str) -> Path:
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self._path.parent / path
        return path
