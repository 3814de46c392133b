"""
mediashrink.limits
~~~~~~~~~~~~~~~~~~
Per-tier ceilings the encoder can be trusted with.

The engine decodes the input, keeps a working frame and encodes the output
at the same time, each at 4 bytes per pixel, so one image costs roughly
``pixels * 4 * 3`` bytes of engine memory.
"""

from __future__ import annotations

from dataclasses import dataclass

from mediashrink.models import QualityTier

BYTES_PER_PIXEL   = 4
BUFFER_MULTIPLIER = 3   # decode buffer + working buffer + encode buffer
MIB               = 1024 * 1024


@dataclass(frozen=True)
class QualityTierLimits:
    max_pixels: int
    max_memory_mb: float

    @property
    def pixel_budget(self) -> int:
        """Largest pixel count that satisfies both ceilings."""
        by_memory = int(self.max_memory_mb * MIB / (BYTES_PER_PIXEL * BUFFER_MULTIPLIER))
        return min(self.max_pixels, by_memory)


TIER_LIMITS: dict[QualityTier, QualityTierLimits] = {
    QualityTier.SPEED:  QualityTierLimits(max_pixels=8_000_000,  max_memory_mb=96.0),
    QualityTier.LOW:    QualityTierLimits(max_pixels=12_000_000, max_memory_mb=144.0),
    QualityTier.MEDIUM: QualityTierLimits(max_pixels=16_000_000, max_memory_mb=192.0),
    QualityTier.HIGH:   QualityTierLimits(max_pixels=25_000_000, max_memory_mb=300.0),
}


def limits_for(tier: QualityTier) -> QualityTierLimits:
    return TIER_LIMITS[tier]
