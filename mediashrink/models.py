"""
mediashrink.models
~~~~~~~~~~~~~~~~~~
Pure dataclasses and enums. No Qt, no I/O.
These travel freely between the pipeline, the worker thread and the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mediashrink.utils import compression_ratio


# ── Enums ─────────────────────────────────────────────────────────────────────

class MediaKind(Enum):
    VIDEO = "video"
    IMAGE = "image"


class QualityTier(Enum):
    SPEED  = "speed"   # fastest, lowest memory ceiling
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"    # best quality, highest memory ceiling


class JobStatus(Enum):
    IDLE       = "idle"        # nothing running, engine may or may not be loaded
    LOADING    = "loading"     # engine one-time initialisation
    PROCESSING = "processing"  # engine is executing a job
    COMPLETED  = "completed"   # last job produced an output
    ERROR      = "error"       # last job (or the load) failed


# ── Settings ──────────────────────────────────────────────────────────────────

ORIGINAL_RESOLUTION = "original"


@dataclass(frozen=True)
class CompressionSettings:
    """
    User-chosen knobs for one job.

    Build these through ``validation.parse_settings`` so that the format
    belongs to the media kind and ``resolution`` is either ``"original"``
    or a ``"W:H"`` pair of positive integers.
    """
    quality: QualityTier
    output_format: str             # e.g. "mp4", "webp"
    resolution: str = ORIGINAL_RESOLUTION

    @property
    def keeps_resolution(self) -> bool:
        return self.resolution == ORIGINAL_RESOLUTION

    def to_dict(self) -> dict:
        return {
            "quality":    self.quality.value,
            "format":     self.output_format,
            "resolution": self.resolution,
        }


# ── Probe results ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageGeometry:
    width: int
    height: int

    @property
    def pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Assessment:
    """Verdict of the memory-safety governor for one image."""
    needs_downscale: bool
    pixels: int
    estimated_memory_mb: float
    safe_resolution: str | None = None


# ── Job state ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class JobState:
    status: JobStatus = JobStatus.IDLE
    progress: float = 0.0          # 0.0 – 1.0
    error: str | None = None

    @property
    def busy(self) -> bool:
        return self.status in (JobStatus.LOADING, JobStatus.PROCESSING)


# ── Job output ────────────────────────────────────────────────────────────────

@dataclass
class CompressionResult:
    """The output artifact of a finished job plus what it took to make it."""
    kind: MediaKind
    data: bytes = field(repr=False)
    output_format: str
    original_size: int
    elapsed_seconds: float = 0.0
    directives: list[str] = field(default_factory=list)
    downscaled_to: str | None = None

    @property
    def mime_type(self) -> str:
        return f"{self.kind.value}/{self.output_format}"

    @property
    def compressed_size(self) -> int:
        return len(self.data)

    @property
    def compression_ratio(self) -> float:
        """Fraction of the original size saved (negative if the file grew)."""
        return compression_ratio(self.original_size, self.compressed_size)

    @property
    def filename(self) -> str:
        return f"compressed_{self.kind.value}.{self.output_format}"
