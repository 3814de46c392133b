"""
mediashrink.session
~~~~~~~~~~~~~~~~~~~
CompressionSession is what a UI (or the CLI) talks to: one engine, one
JobState, at most one job in flight.

Each start() issues a new job token. Worker signals carrying any other token
belong to a job that was reset or superseded and are dropped, so a late
completion can never overwrite the state of the current job.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Union

from PySide6.QtCore import QObject, Signal, Slot

from mediashrink.engine import Engine, FFmpegEngine
from mediashrink.errors import BusyError, ValidationError
from mediashrink.models import (
    CompressionResult,
    CompressionSettings,
    JobState,
    JobStatus,
    MediaKind,
)
from mediashrink.pipeline import plan_job
from mediashrink.state import JobStateMachine
from mediashrink.validation import input_extension, parse_kind, parse_settings
from mediashrink.worker import CompressionWorker

log = logging.getLogger(__name__)

InputFile = Union[Path, str, tuple[str, bytes]]


class CompressionSession(QObject):

    state_changed = Signal(object)   # JobState
    result_ready  = Signal(object)   # CompressionResult

    def __init__(self, engine: Engine | None = None, parent=None):
        super().__init__(parent)
        self._engine  = engine if engine is not None else FFmpegEngine()
        self._machine = JobStateMachine(self)
        self._machine.state_changed.connect(self.state_changed.emit)
        self._token   = 0
        self._result: CompressionResult | None = None
        self._workers: dict[int, CompressionWorker] = {}

    # ── Read-only view ────────────────────────────────────────────────────────

    @property
    def state(self) -> JobState:
        return self._machine.state

    @property
    def result(self) -> CompressionResult | None:
        return self._result

    @property
    def token(self) -> int:
        return self._token

    @property
    def engine(self) -> Engine:
        return self._engine

    # ── Commands ──────────────────────────────────────────────────────────────

    def start(
        self,
        kind: MediaKind | str,
        file: InputFile,
        settings: CompressionSettings | Mapping,
    ) -> int:
        """
        Validate the request and launch a worker for it. Returns the job token.

        Raises:
            BusyError        – a job is loading or processing
            ValidationError  – the request is malformed, the input is too large or
                               an image cannot be made safe (state moves to error)
        """
        if self.state.busy:
            raise BusyError(
                f"A job is already {self.state.status.value}; reset or wait for it to finish"
            )

        self._reap_workers()
        if self.state.status in (JobStatus.COMPLETED, JobStatus.ERROR):
            self._machine.reset()
        self._result = None
        self._token += 1
        token = self._token

        try:
            kind     = parse_kind(kind)
            parsed   = parse_settings(kind, settings)
            name, data = _read_input(file)
            ext      = input_extension(name)
            plan     = plan_job(kind, data, parsed)
        except ValidationError as exc:
            log.error("Job %d rejected: %s", token, exc)
            self._machine.fail(str(exc))
            raise

        log.info("Job %d: %s '%s' with %s", token, kind.value, name, parsed.to_dict())

        if self._engine.loaded:
            self._machine.begin_processing()
        else:
            self._machine.begin_loading()

        worker = CompressionWorker(token, self._engine, kind, data, ext, parsed,
                                   plan=plan, parent=self)
        worker.loading_started.connect(self._on_loading_started)
        worker.loading_finished.connect(self._on_loading_finished)
        worker.progress_changed.connect(self._on_progress)
        worker.succeeded.connect(self._on_succeeded)
        worker.failed.connect(self._on_failed)
        worker.finished.connect(self._reap_workers)

        self._workers[token] = worker
        worker.start()
        return token

    def reset(self) -> None:
        """
        Back to idle. A running job is not interrupted; it finishes in the
        background and whatever it reports is discarded.
        """
        running = [t for t, w in self._workers.items() if w.isRunning()]
        if running:
            log.info("Reset while job(s) %s still running; their results will be discarded",
                     running)
        self._token += 1
        self._result = None
        self._machine.reset()

    def shutdown(self, timeout_ms: int = 30_000) -> None:
        """Wait for background workers, then release the engine's resources."""
        for worker in list(self._workers.values()):
            worker.wait(timeout_ms)
        self._reap_workers()
        close = getattr(self._engine, "close", None)
        if callable(close):
            close()

    # ── Worker slots ──────────────────────────────────────────────────────────

    @Slot(int)
    def _on_loading_started(self, token: int) -> None:
        if self._is_stale(token, "loading_started"):
            return
        if self.state.status is JobStatus.IDLE:
            self._machine.begin_loading()

    @Slot(int)
    def _on_loading_finished(self, token: int) -> None:
        if self._is_stale(token, "loading_finished"):
            return
        self._enter_processing()

    @Slot(int, float)
    def _on_progress(self, token: int, fraction: float) -> None:
        if self._is_stale(token, "progress"):
            return
        self._enter_processing()
        self._machine.update_progress(fraction)

    @Slot(int, object)
    def _on_succeeded(self, token: int, result: CompressionResult) -> None:
        if self._is_stale(token, "result"):
            return
        self._enter_processing()
        self._result = result
        if self._machine.complete():
            self.result_ready.emit(result)

    @Slot(int, str)
    def _on_failed(self, token: int, message: str) -> None:
        if self._is_stale(token, "failure"):
            return
        self._machine.fail(message)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _is_stale(self, token: int, event: str) -> bool:
        if token == self._token:
            return False
        log.info("Discarding %s from superseded job %d (current job is %d)",
                 event, token, self._token)
        return True

    def _enter_processing(self) -> None:
        if self.state.status is JobStatus.LOADING:
            self._machine.finish_loading()
        if self.state.status is JobStatus.IDLE:
            self._machine.begin_processing()

    @Slot()
    def _reap_workers(self) -> None:
        for token, worker in list(self._workers.items()):
            if not worker.isRunning():
                self._workers.pop(token)
                worker.deleteLater()


def _read_input(file: InputFile) -> tuple[str, bytes]:
    if isinstance(file, tuple):
        name, data = file
        return str(name), bytes(data)

    path = Path(file)
    try:
        return path.name, path.read_bytes()
    except OSError as exc:
        raise ValidationError(f"Could not read {path}: {exc}") from exc
