"""
Headless service runner for Recording Relay.

Wires the pipeline (snapshot reader, detector, converter, uploader,
ledger) to the poll thread and the HTTP/WebSocket surface, then serves
until SIGINT/SIGTERM:

    python -m rec_relay run [--config PATH]

On shutdown the poll thread stops first, then in-flight conversions and
uploads get ``shutdown_timeout_seconds`` to finish before being abandoned.
"""

import logging
import logging.handlers
import sys

import uvicorn
from fastapi import FastAPI

from rec_relay import __app_name__, __version__
from rec_relay.config import Config, get_log_path
from rec_relay.converter import Converter
from rec_relay.ledger import ProcessedLedger
from rec_relay.pipeline import RecordingPipeline
from rec_relay.server import create_app
from rec_relay.snapshot import SnapshotReader
from rec_relay.uploader import DriveUploader
from rec_relay.watcher import RecordingWatcher

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(cfg: Config) -> None:
    """Configure rotating file log and stderr handler."""
    log_path = get_log_path()
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter(_LOG_FORMAT)

    # Rotating file handler
    max_bytes = cfg.max_log_size_mb * 1024 * 1024
    fh = logging.handlers.RotatingFileHandler(
        str(log_path),
        maxBytes=max_bytes,
        backupCount=cfg.log_backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root_logger.addHandler(fh)

    # Stderr handler (container logs)
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)


def build_pipeline(cfg: Config) -> RecordingPipeline:
    """Construct the pipeline and its collaborators from *cfg*."""
    if cfg.growth_window <= cfg.poll_interval:
        logger.warning(
            "growth_window_seconds (%.1f) should exceed poll_interval_seconds (%d); "
            "a single slow tick may end a recording early.",
            cfg.growth_window, cfg.poll_interval,
        )

    uploader = DriveUploader.from_oauth_files(
        cfg.oauth_client_path,
        cfg.oauth_token_path,
        folder_id=cfg.drive_folder_id,
        mime_type=cfg.upload_mime_type,
    )
    ledger_path = cfg.ledger_path
    if ledger_path is None:
        logger.warning(
            "Ledger persistence is off; recordings finished before a restart "
            "may be uploaded again."
        )
    return RecordingPipeline(
        reader=SnapshotReader(cfg.recordings_dir, cfg.recording_extension),
        converter=Converter(
            ffmpeg_path=cfg.ffmpeg_path,
            output_extension=cfg.converted_extension,
            timeout=cfg.conversion_timeout,
        ),
        uploader=uploader,
        ledger=ProcessedLedger(ledger_path),
        growth_window=cfg.growth_window,
    )


def build_app(cfg: Config) -> FastAPI:
    """Return the ASGI app with the pipeline and poll thread attached."""
    pipeline = build_pipeline(cfg)
    watcher = RecordingWatcher(pipeline, interval=cfg.poll_interval)
    return create_app(
        pipeline, watcher=watcher, shutdown_timeout=cfg.shutdown_timeout
    )


def run(cfg: Config) -> None:
    """Serve until interrupted."""
    if not cfg.is_configured():
        logger.error("Service cannot start: recordings folder not configured.")
        raise RuntimeError("Recording Relay is not configured.")

    logger.info("%s %s starting.", __app_name__, __version__)
    logger.info(
        "Watching %s for *.%s (growth window %.1fs)",
        cfg.recordings_dir, cfg.recording_extension, cfg.growth_window,
    )
    app = build_app(cfg)
    # log_config=None keeps the handlers installed by setup_logging
    uvicorn.run(app, host=cfg.http_host, port=cfg.http_port, log_config=None)
    logger.info("%s stopped.", __app_name__)
