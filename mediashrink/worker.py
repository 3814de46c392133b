"""
mediashrink.worker
~~~~~~~~~~~~~~~~~~
QThread that runs a single compression job and emits signals the session
connects to. Every signal carries the job token first so the receiver can
drop events from a job it has since abandoned.

Signals
-------
loading_started(int)            engine initialisation began
loading_finished(int)           engine initialisation succeeded
progress_changed(int, float)    0.0 – 1.0 as the engine advances
succeeded(int, CompressionResult)
failed(int, str)                display-ready error message
"""

from __future__ import annotations

import logging

from PySide6.QtCore import QThread, Signal

from mediashrink.engine import Engine
from mediashrink.errors import CompressionError, EngineError, user_message
from mediashrink.models import CompressionSettings, MediaKind
from mediashrink.pipeline import JobPlan, compress, plan_job

log = logging.getLogger(__name__)


class CompressionWorker(QThread):

    loading_started  = Signal(int)
    loading_finished = Signal(int)
    progress_changed = Signal(int, float)
    succeeded        = Signal(int, object)
    failed           = Signal(int, str)

    def __init__(
        self,
        token: int,
        engine: Engine,
        kind: MediaKind,
        data: bytes,
        input_ext: str,
        settings: CompressionSettings,
        plan: JobPlan | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.token      = token
        self._engine    = engine
        self._kind      = kind
        self._data      = data
        self._input_ext = input_ext
        self._settings  = settings
        self._plan      = plan
        log.debug("Worker %d created for %s → %s", token, kind.value, settings.output_format)

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        log.debug("Worker %d started", self.token)
        try:
            plan = self._plan or plan_job(self._kind, self._data, self._settings)
            self._ensure_loaded()
            result = compress(
                self._engine,
                self._kind,
                self._data,
                self._input_ext,
                self._settings,
                job_id=self.token,
                on_progress=lambda fraction: self.progress_changed.emit(self.token, fraction),
                plan=plan,
            )
        except CompressionError as exc:
            log.error("Job %d failed: %s", self.token, exc)
            self.failed.emit(self.token, user_message(exc))
            return
        except Exception as exc:
            # Nothing may escape QThread.run(); report it like any other failure.
            log.exception("Job %d crashed", self.token)
            self.failed.emit(self.token, user_message(exc))
            return
        finally:
            self._data = b""

        self.succeeded.emit(self.token, result)

    # ── Internal ──────────────────────────────────────────────────────────────

    def _ensure_loaded(self) -> None:
        if self._engine.loaded:
            return
        self.loading_started.emit(self.token)
        try:
            self._engine.load()
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(str(exc) or "Failed to load the engine") from exc
        self.loading_finished.emit(self.token)
