"""Tests for the ffmpeg remux stage."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from rec_relay import converter as converter_module
from rec_relay.converter import Converter


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "rec1.flv"
    path.write_bytes(b"FLV\x01")
    return path


def test_command_remuxes_without_reencoding(tmp_path: Path) -> None:
    conv = Converter(ffmpeg_path="/usr/bin/ffmpeg")
    cmd = conv.build_command(tmp_path / "a.flv", tmp_path / "a.mp4")
    assert cmd[0] == "/usr/bin/ffmpeg"
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert cmd[cmd.index("-i") + 1] == str(tmp_path / "a.flv")
    assert cmd[-1] == str(tmp_path / "a.mp4")


def test_output_never_overwrites_source(tmp_path: Path) -> None:
    conv = Converter(output_extension="mp4")
    assert conv.output_path_for(tmp_path / "a.flv") == tmp_path / "a.mp4"
    assert conv.output_path_for(tmp_path / "a.mp4") == tmp_path / "a.faststart.mp4"


def test_successful_conversion_returns_output(
    monkeypatch: pytest.MonkeyPatch, source: Path
) -> None:
    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"mp4")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(converter_module.subprocess, "run", fake_run)

    result = Converter().convert(source)

    assert result.success
    assert result.output == source.with_suffix(".mp4")
    assert result.returncode == 0
    assert source.exists()


def test_nonzero_exit_is_failure(monkeypatch: pytest.MonkeyPatch, source: Path) -> None:
    monkeypatch.setattr(
        converter_module.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 1, "", "Invalid data found"),
    )

    result = Converter().convert(source)

    assert not result.success
    assert result.output is None
    assert result.returncode == 1
    assert "code 1" in result.error


def test_missing_output_is_failure(monkeypatch: pytest.MonkeyPatch, source: Path) -> None:
    monkeypatch.setattr(
        converter_module.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, "", ""),
    )

    result = Converter().convert(source)

    assert not result.success
    assert "missing" in result.error


def test_spawn_error_is_failure(monkeypatch: pytest.MonkeyPatch, source: Path) -> None:
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(converter_module.subprocess, "run", fake_run)

    result = Converter(ffmpeg_path="no-such-ffmpeg").convert(source)

    assert not result.success
    assert result.returncode is None
    assert "Could not run ffmpeg" in result.error


def test_timeout_is_failure(monkeypatch: pytest.MonkeyPatch, source: Path) -> None:
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["timeout"] = kwargs.get("timeout")
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(converter_module.subprocess, "run", fake_run)

    result = Converter(timeout=30).convert(source)

    assert seen["timeout"] == 30
    assert not result.success
    assert "timed out" in result.error
