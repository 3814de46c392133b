"""
mediashrink.governor
~~~~~~~~~~~~~~~~~~~~
Admission check for still images.

The engine works inside a fixed memory arena and an oversized frame kills
it outright instead of failing cleanly, so images that would not fit the
tier's ceilings are scaled down *before* any directive is issued.
Only applies when the caller asked to keep the original resolution;
an explicit resolution is never second-guessed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace

from mediashrink.errors import ValidationError
from mediashrink.limits import BUFFER_MULTIPLIER, BYTES_PER_PIXEL, MIB, limits_for
from mediashrink.models import (
    Assessment,
    CompressionSettings,
    ImageGeometry,
    MediaKind,
    QualityTier,
)

log = logging.getLogger(__name__)

SCALE_STEP = 0.0001   # scale factors are quantised to four decimals


def estimate_memory_mb(pixels: int) -> float:
    return pixels * BYTES_PER_PIXEL / MIB * BUFFER_MULTIPLIER


def assess(geometry: ImageGeometry, tier: QualityTier) -> Assessment:
    """
    Decide whether *geometry* fits *tier* and, if not, the largest even
    ``"W:H"`` with the same aspect ratio that does.

    Raises:
        ValidationError – if the geometry is invalid, or the only safe
                          size would collapse a dimension to zero
    """
    if geometry.width <= 0 or geometry.height <= 0:
        raise ValidationError(
            f"Invalid image geometry {geometry.width}x{geometry.height}"
        )

    limits = limits_for(tier)
    pixels = geometry.pixels
    memory = estimate_memory_mb(pixels)

    needs_downscale = pixels > limits.max_pixels or memory > limits.max_memory_mb
    if not needs_downscale:
        return Assessment(False, pixels, memory)

    budget = limits.pixel_budget
    scale  = round(math.sqrt(budget / pixels), 4)
    width, height = _scaled_even(geometry, scale)

    while width * height > budget and scale > SCALE_STEP:
        scale = round(scale - SCALE_STEP, 4)
        width, height = _scaled_even(geometry, scale)

    if width <= 0 or height <= 0:
        raise ValidationError(
            f"Image too large to process safely: {geometry.width}x{geometry.height} "
            f"cannot be scaled under {limits.max_pixels} pixels "
            f"without losing a dimension"
        )

    return Assessment(True, pixels, memory, safe_resolution=f"{width}:{height}")


def apply(
    kind: MediaKind,
    settings: CompressionSettings,
    geometry: ImageGeometry | None,
) -> tuple[CompressionSettings, Assessment | None]:
    """
    Return the settings the compiler should actually use.

    Videos, explicit resolutions and missing geometry pass through
    untouched with no assessment.
    """
    if kind is not MediaKind.IMAGE or not settings.keeps_resolution or geometry is None:
        return settings, None

    verdict = assess(geometry, settings.quality)
    if not verdict.needs_downscale:
        log.debug("Image %dx%d (%.1f MB est.) fits tier '%s'",
                  geometry.width, geometry.height,
                  verdict.estimated_memory_mb, settings.quality.value)
        return settings, verdict

    log.warning(
        "Downscaling image %dx%d (%d px, %.1f MB est.) to %s to stay within "
        "the '%s' tier limits",
        geometry.width, geometry.height, verdict.pixels,
        verdict.estimated_memory_mb, verdict.safe_resolution, settings.quality.value,
    )
    return replace(settings, resolution=verdict.safe_resolution), verdict


def _scaled_even(geometry: ImageGeometry, scale: float) -> tuple[int, int]:
    width  = math.floor(geometry.width * scale)
    height = math.floor(geometry.height * scale)
    return width - width % 2, height - height % 2
