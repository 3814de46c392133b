"""
mediashrink.errors
~~~~~~~~~~~~~~~~~~
Exception taxonomy for a compression job.

    ValidationError   rejected before the engine is touched, never retried
    EngineError       the engine could not be loaded / initialised
    ProcessingError   the engine failed while executing directives
    BusyError         a job is already in flight on this session
"""

from __future__ import annotations

import re

MEMORY_ERROR_MESSAGE = (
    "The file needs more memory than the encoder has available. "
    "Try a lower resolution or quality."
)

# Messages the engine (or the runtime around it) produces when it runs out of
# room: allocation failures, arena overruns, OOM kills.
_MEMORY_PATTERNS = re.compile(
    r"out of memory"
    r"|cannot allocate"
    r"|memory allocation"
    r"|memory access out of bounds"
    r"|out of bounds"
    r"|bad_alloc"
    r"|RangeError"
    r"|ENOMEM"
    r"|\bOOM\b",
    re.IGNORECASE,
)


class CompressionError(Exception):
    """Base class for every failure a job can report."""


class ValidationError(CompressionError):
    pass


class EngineError(CompressionError):
    pass


class ProcessingError(CompressionError):

    def __init__(self, message: str, memory_related: bool = False):
        super().__init__(message)
        self.memory_related = memory_related


class BusyError(CompressionError):
    pass


def is_memory_failure(message: str) -> bool:
    return bool(_MEMORY_PATTERNS.search(message or ""))


def classify_failure(message: str) -> ProcessingError:
    """Wrap a raw engine failure message, flagging memory/bounds failures."""
    return ProcessingError(message, memory_related=is_memory_failure(message))


def user_message(exc: BaseException) -> str:
    """
    The text to show for a failed job.

    Memory/bounds failures, flagged or recognised from their text, get a
    fixed remediation hint; anything else passes its own message through
    unchanged.
    """
    if isinstance(exc, ProcessingError) and (exc.memory_related or is_memory_failure(str(exc))):
        return MEMORY_ERROR_MESSAGE
    return str(exc) or exc.__class__.__name__
