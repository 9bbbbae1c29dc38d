"""Tests for JSON-backed configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rec_relay import platform_utils
from rec_relay.config import DEFAULT_CONFIG, Config


def test_missing_file_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    cfg = Config(path)

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
    assert cfg.recordings_dir == "/var/recordings"
    assert cfg.recording_extension == "flv"
    assert cfg.poll_interval == 3
    assert cfg.growth_window == 5.0
    assert cfg.conversion_timeout is None
    assert cfg.is_configured()


def test_stored_values_merge_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"recording_extension": ".FLV", "growth_window_seconds": 2.5}),
        encoding="utf-8",
    )

    cfg = Config(path)

    assert cfg.recording_extension == "flv"
    assert cfg.growth_window == 2.5
    assert cfg.http_port == 3000


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops", encoding="utf-8")

    cfg = Config(path)

    assert cfg.poll_interval == DEFAULT_CONFIG["poll_interval_seconds"]


def test_setters_clamp_values(tmp_path: Path) -> None:
    cfg = Config(tmp_path / "config.json")
    cfg.poll_interval = 0
    cfg.growth_window = 0.2
    cfg.http_port = 70000
    cfg.conversion_timeout = -5
    cfg.save()

    reloaded = Config(tmp_path / "config.json")
    assert reloaded.poll_interval == 1
    assert reloaded.growth_window == 1.0
    assert reloaded.http_port == 65535
    assert reloaded.conversion_timeout is None


def test_relative_oauth_paths_resolve_beside_config(tmp_path: Path) -> None:
    cfg = Config(tmp_path / "config.json")
    assert cfg.oauth_client_path == tmp_path / "oauth-client.json"

    cfg.oauth_token_path = "/etc/rec-relay/token.json"
    assert cfg.oauth_token_path == Path("/etc/rec-relay/token.json")


def test_ledger_path_defaults_to_config_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("REC_RELAY_CONFIG_DIR", str(tmp_path / "home"))
    cfg = Config(tmp_path / "config.json")

    assert cfg.ledger_path == platform_utils.get_ledger_path()
    assert cfg.ledger_path.parent == tmp_path / "home"

    cfg.persist_ledger = False
    assert cfg.ledger_path is None


def test_out_of_range_values_in_file_are_clamped(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "poll_interval_seconds": 0,
                "growth_window_seconds": 0.2,
                "http_port": 70000,
                "shutdown_timeout_seconds": -5,
                "max_log_size_mb": 0,
                "log_backup_count": -1,
            }
        ),
        encoding="utf-8",
    )

    cfg = Config(path)

    assert cfg.poll_interval == 1
    assert cfg.growth_window == 1.0
    assert cfg.http_port == 65535
    assert cfg.shutdown_timeout == 0.0
    assert cfg.max_log_size_mb == 1
    assert cfg.log_backup_count == 0
