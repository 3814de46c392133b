"""
mediashrink.engine
~~~~~~~~~~~~~~~~~~
The transcoding engine as seen by the pipeline.

Engine is the contract: load once, stage an input under a job-local name,
execute a directive list while reporting fractional progress, read the
output back, delete staged names. FFmpegEngine fulfils it with the ffmpeg
CLI working inside a private scratch directory.

One engine is shared by every job of a session; ``lock`` serialises jobs so
that a job started after a reset waits for the superseded one to let go.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from mediashrink.errors import EngineError, ProcessingError, classify_failure
from mediashrink.paths import resolve_binaries, validate_binary
from mediashrink.probe import probe_duration

log = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

_STDERR_TAIL_LINES = 20


class Engine(ABC):

    def __init__(self):
        self.lock = threading.Lock()

    @property
    @abstractmethod
    def loaded(self) -> bool:
        ...

    @abstractmethod
    def load(self) -> None:
        """Initialise the engine. Idempotent after the first success.

        Raises:
            EngineError – if the engine cannot be initialised
        """

    @abstractmethod
    def write_input(self, name: str, data: bytes) -> None:
        ...

    @abstractmethod
    def execute(self, directives: list[str], on_progress: ProgressCallback | None = None) -> None:
        """Run *directives*, calling *on_progress* with fractions in [0, 1].

        Raises:
            ProcessingError – if the engine reports a failure
        """

    @abstractmethod
    def read_output(self, name: str) -> bytes:
        ...

    @abstractmethod
    def delete_file(self, name: str) -> None:
        """Best-effort removal; failures are logged, never raised."""


class FFmpegEngine(Engine):
    """
    Engine backed by the ffmpeg and ffprobe executables.

    The binaries default to ``paths.resolve_binaries()``; pass explicit paths
    to pin them.
    """

    def __init__(self, ffmpeg: Path | None = None, ffprobe: Path | None = None):
        super().__init__()
        self._ffmpeg  = ffmpeg
        self._ffprobe = ffprobe
        self._workdir: Path | None = None
        self._load_lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._workdir is not None

    @property
    def workdir(self) -> Path | None:
        return self._workdir

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def load(self) -> None:
        with self._load_lock:
            if self._workdir is not None:
                return

            ffmpeg, ffprobe = self._binaries()
            self._check_runs(ffmpeg)

            self._ffmpeg, self._ffprobe = ffmpeg, ffprobe
            self._workdir = Path(tempfile.mkdtemp(prefix="mediashrink-"))
            log.info("Engine loaded: ffmpeg=%s, scratch=%s", ffmpeg, self._workdir)

    def close(self) -> None:
        """Drop the scratch directory. The engine can be loaded again later."""
        with self._load_lock:
            if self._workdir is None:
                return
            shutil.rmtree(self._workdir, ignore_errors=True)
            log.info("Engine closed, removed %s", self._workdir)
            self._workdir = None

    # ── Staging ───────────────────────────────────────────────────────────────

    def write_input(self, name: str, data: bytes) -> None:
        path = self._staged(name)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise classify_failure(f"Could not stage input {name}: {exc}") from exc
        log.debug("Staged %s (%d bytes)", name, len(data))

    def read_output(self, name: str) -> bytes:
        path = self._staged(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ProcessingError(f"Engine produced no output named {name}") from None
        except OSError as exc:
            raise classify_failure(f"Could not read output {name}: {exc}") from exc

    def delete_file(self, name: str) -> None:
        try:
            self._staged(name).unlink(missing_ok=True)
        except (OSError, EngineError, ProcessingError) as exc:
            log.warning("Could not delete staged file %s: %s", name, exc)

    # ── Execution ─────────────────────────────────────────────────────────────

    def execute(self, directives: list[str], on_progress: ProgressCallback | None = None) -> None:
        workdir  = self._require_loaded()
        duration = self._input_duration(directives)

        cmd = [
            str(self._ffmpeg),
            "-hide_banner",
            "-nostats",            # suppress human-readable stats on stderr
            "-progress", "pipe:1", # machine-readable key=value progress on stdout
            "-y",                  # overwrite output without prompting
            *directives,
        ]
        log.info("Running: %s", " ".join(cmd))

        try:
            process = subprocess.Popen(
                cmd,
                cwd=workdir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",   # stderr carries tags and paths in any encoding
            )
        except OSError as exc:
            raise classify_failure(f"Could not start ffmpeg: {exc}") from exc

        # ffmpeg writes encoding info to stderr. If only stdout is read, the
        # stderr pipe buffer fills up, ffmpeg blocks on it and stdout stalls.
        stderr_lines: list[str] = []

        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    stderr_lines.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        for line in process.stdout:
            fraction = parse_progress_line(line.strip(), duration)
            if fraction is not None and on_progress is not None:
                on_progress(fraction)

        stderr_thread.join()
        process.wait()
        log.debug("ffmpeg exited with code %s", process.returncode)

        if process.returncode != 0:
            message = f"ffmpeg exited with code {process.returncode}"
            if stderr_lines:
                message += ": " + "\n".join(stderr_lines[-_STDERR_TAIL_LINES:])
            raise classify_failure(message)

    # ── Internal ──────────────────────────────────────────────────────────────

    def _binaries(self) -> tuple[Path, Path]:
        (ffmpeg, ffprobe), errors = resolve_binaries()
        ffmpeg  = self._ffmpeg or ffmpeg
        ffprobe = self._ffprobe or ffprobe
        if self._ffmpeg or self._ffprobe:
            errors = [e for e in (validate_binary(ffmpeg), validate_binary(ffprobe)) if e]
        if errors:
            raise EngineError("Engine binaries unavailable: " + "; ".join(errors))
        return ffmpeg, ffprobe

    @staticmethod
    def _check_runs(ffmpeg: Path) -> None:
        try:
            result = subprocess.run(
                [str(ffmpeg), "-hide_banner", "-version"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise EngineError(f"Could not start {ffmpeg}: {exc}") from exc
        if result.returncode != 0:
            raise EngineError(
                f"{ffmpeg} failed to initialise:\n{result.stderr.strip()}"
            )

    def _require_loaded(self) -> Path:
        if self._workdir is None:
            raise EngineError("Engine is not loaded")
        return self._workdir

    def _staged(self, name: str) -> Path:
        workdir = self._require_loaded()
        if not name or Path(name).name != name:
            raise ProcessingError(f"Staged file names must be plain names, got {name!r}")
        return workdir / name

    def _input_duration(self, directives: list[str]) -> float:
        try:
            input_name = directives[directives.index("-i") + 1]
        except (ValueError, IndexError):
            return 0.0
        return probe_duration(self._ffprobe, self._staged(input_name))


# ── Progress line parser ──────────────────────────────────────────────────────

def parse_progress_line(line: str, duration: float) -> float | None:
    """
    Turn one ``-progress`` line into a fraction of *duration*.

        out_time=00:00:05.000000   → 0.5 for a 10 s input
        progress=end               → 1.0
        anything else              → None
    """
    if line == "progress=end":
        return 1.0
    if not line.startswith("out_time="):
        return None
    if duration <= 0:
        return None

    seconds = _hhmmss_to_seconds(line.split("=", 1)[1])
    return min(max(seconds / duration, 0.0), 1.0)


def _hhmmss_to_seconds(time_str: str) -> float:
    sign = -1.0 if time_str.startswith("-") else 1.0
    try:
        parts = time_str.lstrip("-").split(":")
        h, m, s = float(parts[0]), float(parts[1]), float(parts[2])
        return sign * (h * 3600 + m * 60 + s)
    except (ValueError, IndexError):
        log.debug("Could not parse time string '%s'", time_str)
        return 0.0
