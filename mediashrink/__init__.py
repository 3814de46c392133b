from .models import (
    CompressionResult, CompressionSettings, ImageGeometry, JobState,
    JobStatus, MediaKind, QualityTier,
)
from .errors import (
    BusyError, CompressionError, EngineError, ProcessingError, ValidationError,
)
from .command_builder import build_directives
from .governor import assess
from .engine import Engine, FFmpegEngine
from .pipeline import JobPlan, compress, plan_job
from .session import CompressionSession
from .validation import parse_settings

__all__ = [
    "CompressionResult", "CompressionSettings", "ImageGeometry", "JobState",
    "JobStatus", "MediaKind", "QualityTier",
    "BusyError", "CompressionError", "EngineError", "ProcessingError", "ValidationError",
    "build_directives",
    "assess",
    "Engine", "FFmpegEngine",
    "JobPlan", "compress", "plan_job",
    "CompressionSession",
    "parse_settings",
]
