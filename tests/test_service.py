"""Tests for service wiring."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rec_relay import __main__ as cli
from rec_relay import service
from rec_relay.config import Config


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    config = Config(tmp_path / "config.json")
    config.recordings_dir = str(tmp_path / "recordings")
    config.ledger_path = str(tmp_path / "processed.json")
    return config


def test_build_pipeline_without_oauth_files_runs_offline(cfg: Config) -> None:
    pipeline = service.build_pipeline(cfg)

    assert pipeline.status() == {
        "isRecording": False,
        "remoteSinkEnabled": False,
        "activeFile": None,
        "processedCount": 0,
        "inFlight": [],
        "lostSessions": [],
        "lostCount": 0,
    }
    assert pipeline.ledger.path == cfg.ledger_path
    assert pipeline.tick() is None


def test_growth_window_not_above_poll_interval_warns(
    cfg: Config, caplog: pytest.LogCaptureFixture
) -> None:
    cfg.poll_interval = 5
    cfg.growth_window = 5

    with caplog.at_level(logging.WARNING, logger="rec_relay.service"):
        service.build_pipeline(cfg)

    assert any("growth_window_seconds" in r.getMessage() for r in caplog.records)


def test_build_app_attaches_watcher(cfg: Config) -> None:
    app = service.build_app(cfg)
    assert app.state.watcher is not None
    assert app.state.watcher.interval == cfg.poll_interval


def test_cli_defaults_to_run() -> None:
    args = cli._parse_args([])
    assert args.command == "run"
    assert args.config is None

    args = cli._parse_args(["auth", "--local-server", "--config", "/tmp/c.json"])
    assert args.command == "auth"
    assert args.local_server
    assert args.config == Path("/tmp/c.json")
