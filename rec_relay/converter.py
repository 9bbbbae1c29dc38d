"""
Remux engine for Recording Relay.

Repackages a finished recording into an MP4 beside it using ffmpeg,
without re-encoding, and moves the index to the front of the file so
playback can start before the whole file is downloaded.  The source
recording is never modified or deleted.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

# Keep ffmpeg's stderr excerpt in logs readable
_STDERR_TAIL = 2000


@dataclass
class ConversionResult:
    """Outcome of a single remux.  ``output`` is None on failure."""
    source: Path
    output: Path | None = None
    returncode: int | None = None
    error: str = ""
    started: float = 0.0
    finished: float = 0.0

    @property
    def success(self) -> bool:
        return self.output is not None

    @property
    def duration(self) -> float:
        if self.finished and self.started:
            return self.finished - self.started
        return 0.0

    @property
    def timestamp_str(self) -> str:
        """Human-readable timestamp of when the conversion finished."""
        if self.finished:
            return datetime.fromtimestamp(self.finished).strftime("%Y-%m-%d %H:%M:%S")
        return ""


class Converter:
    """
    Remuxes recordings with ffmpeg.

    Parameters
    ----------
    ffmpeg_path : str
        The ffmpeg executable.
    output_extension : str
        Extension (without dot) of the converted artifact.
    timeout : float, optional
        Seconds to wait for ffmpeg before giving up.  None waits forever.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        output_extension: str = "mp4",
        timeout: float | None = None,
    ):
        self._ffmpeg = ffmpeg_path
        self._extension = output_extension.lower().lstrip(".")
        self._timeout = timeout

    def output_path_for(self, source: Path) -> Path:
        """Return where the converted artifact for *source* is written."""
        target = source.with_suffix(f".{self._extension}")
        if target == source:
            target = source.with_name(f"{source.stem}.faststart.{self._extension}")
        return target

    def build_command(self, source: Path, target: Path) -> list[str]:
        return [
            self._ffmpeg,
            "-y",
            "-loglevel", "error",
            "-i", str(source),
            "-c", "copy",
            "-movflags", "+faststart",
            str(target),
        ]

    def convert(self, source: Path) -> ConversionResult:
        """Remux *source*.  Never raises; failures are reported in the result."""
        source = Path(source)
        target = self.output_path_for(source)
        result = ConversionResult(source=source, started=time.time())

        logger.info("Converting %s -> %s", source.name, target.name)
        try:
            proc = subprocess.run(
                self.build_command(source, target),
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            result.error = f"ffmpeg timed out after {self._timeout}s"
            result.finished = time.time()
            logger.error("Conversion of %s failed: %s", source.name, result.error)
            return result
        except OSError as exc:
            result.error = f"Could not run ffmpeg: {exc}"
            result.finished = time.time()
            logger.error("Conversion of %s failed: %s", source.name, result.error)
            return result

        result.returncode = proc.returncode
        result.finished = time.time()
        stderr = (proc.stderr or "").strip()

        if proc.returncode != 0:
            result.error = f"ffmpeg exited with code {proc.returncode}"
            logger.error(
                "Conversion of %s failed (exit code %d): %s",
                source.name, proc.returncode, stderr[-_STDERR_TAIL:],
            )
            return result
        if not target.exists():
            result.error = f"ffmpeg reported success but {target.name} is missing"
            logger.error("Conversion of %s failed: %s", source.name, result.error)
            return result

        if stderr:
            logger.warning("ffmpeg warnings for %s: %s", source.name, stderr[-_STDERR_TAIL:])
        result.output = target
        logger.info("Converted %s in %.1fs", target.name, result.duration)
        return result
