"""
mediashrink.state
~~~~~~~~~~~~~~~~~
JobStateMachine owns the one JobState of a session and is the only thing
that replaces it.

Transitions
-----------
    idle       → loading      begin_loading()
    loading    → idle         finish_loading()
    idle       → processing   begin_processing()
    processing → processing   update_progress(fraction)
    processing → completed    complete()
    idle | loading | processing → error   fail(message)
    any        → idle         reset()

Every other event is ignored (and logged at DEBUG), so a late event from a
finished or failed job can never corrupt the state.

Signals
-------
state_changed(JobState)   emitted after every accepted transition
"""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Signal

from mediashrink.models import JobState, JobStatus

log = logging.getLogger(__name__)


class JobStateMachine(QObject):

    state_changed = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._state = JobState()

    @property
    def state(self) -> JobState:
        return self._state

    # ── Transitions ───────────────────────────────────────────────────────────

    def begin_loading(self) -> bool:
        if not self._expect("begin_loading", JobStatus.IDLE):
            return False
        self._set(JobState(JobStatus.LOADING))
        return True

    def finish_loading(self) -> bool:
        if not self._expect("finish_loading", JobStatus.LOADING):
            return False
        self._set(JobState(JobStatus.IDLE))
        return True

    def begin_processing(self) -> bool:
        if not self._expect("begin_processing", JobStatus.IDLE):
            return False
        self._set(JobState(JobStatus.PROCESSING, progress=0.0))
        return True

    def update_progress(self, fraction: float) -> bool:
        if not self._expect("update_progress", JobStatus.PROCESSING):
            return False
        fraction = min(max(float(fraction), 0.0), 1.0)
        if fraction <= self._state.progress:
            return False
        self._set(JobState(JobStatus.PROCESSING, progress=fraction))
        return True

    def complete(self) -> bool:
        if not self._expect("complete", JobStatus.PROCESSING):
            return False
        self._set(JobState(JobStatus.COMPLETED, progress=1.0))
        return True

    def fail(self, message: str) -> bool:
        if not self._expect("fail", JobStatus.IDLE, JobStatus.LOADING, JobStatus.PROCESSING):
            return False
        self._set(JobState(JobStatus.ERROR, progress=0.0, error=message))
        return True

    def reset(self) -> bool:
        self._set(JobState())
        return True

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _expect(self, event: str, *allowed: JobStatus) -> bool:
        if self._state.status in allowed:
            return True
        log.debug("Ignoring %s() while %s", event, self._state.status.value)
        return False

    def _set(self, state: JobState) -> None:
        if state.status is not self._state.status:
            log.info("Job status: %s → %s", self._state.status.value, state.status.value)
        self._state = state
        self.state_changed.emit(state)
