import logging

import pytest

from mediashrink import governor
from mediashrink.errors import ValidationError
from mediashrink.limits import TIER_LIMITS
from mediashrink.models import CompressionSettings, ImageGeometry, MediaKind, QualityTier

TIERS = [QualityTier.SPEED, QualityTier.LOW, QualityTier.MEDIUM, QualityTier.HIGH]


def test_limits_are_monotonic():
    limits = [TIER_LIMITS[t] for t in TIERS]
    for lower, higher in zip(limits, limits[1:]):
        assert lower.max_pixels <= higher.max_pixels
        assert lower.max_memory_mb <= higher.max_memory_mb


def test_memory_estimate_counts_three_buffers():
    assert governor.estimate_memory_mb(1024 * 1024) == pytest.approx(12.0)


@pytest.mark.parametrize("tier", TIERS)
def test_image_at_the_limit_is_left_alone(tier):
    max_pixels = TIER_LIMITS[tier].max_pixels
    verdict = governor.assess(ImageGeometry(max_pixels // 1000, 1000), tier)
    assert verdict.needs_downscale is False
    assert verdict.safe_resolution is None


def test_small_image_is_left_alone():
    verdict = governor.assess(ImageGeometry(1920, 1080), QualityTier.SPEED)
    assert not verdict.needs_downscale
    assert verdict.pixels == 1920 * 1080


def test_oversized_medium_image_gets_safe_even_resolution():
    verdict = governor.assess(ImageGeometry(6000, 4000), QualityTier.MEDIUM)
    assert verdict.needs_downscale
    assert verdict.pixels == 24_000_000
    assert verdict.safe_resolution == "4898:3266"


@pytest.mark.parametrize("tier", TIERS)
@pytest.mark.parametrize("width, height", [(6000, 4000), (9000, 9000), (12345, 2469), (30001, 1003)])
def test_safe_resolution_fits_budget_and_is_even(tier, width, height):
    verdict = governor.assess(ImageGeometry(width, height), tier)
    if not verdict.needs_downscale:
        return
    new_w, new_h = (int(v) for v in verdict.safe_resolution.split(":"))
    assert new_w % 2 == 0 and new_h % 2 == 0
    assert 0 < new_w <= width and 0 < new_h <= height
    assert new_w * new_h <= TIER_LIMITS[tier].max_pixels
    assert governor.estimate_memory_mb(new_w * new_h) <= TIER_LIMITS[tier].max_memory_mb


def test_degenerate_downscale_is_rejected():
    with pytest.raises(ValidationError, match="too large to process safely"):
        governor.assess(ImageGeometry(1, 30_000_000), QualityTier.MEDIUM)


def test_invalid_geometry_is_rejected():
    with pytest.raises(ValidationError):
        governor.assess(ImageGeometry(0, 100), QualityTier.HIGH)


def test_apply_replaces_resolution_and_logs_decision(caplog):
    settings = CompressionSettings(QualityTier.MEDIUM, "jpeg")
    with caplog.at_level(logging.WARNING, logger="mediashrink.governor"):
        effective, verdict = governor.apply(MediaKind.IMAGE, settings, ImageGeometry(6000, 4000))
    assert effective.resolution == "4898:3266"
    assert effective.quality is QualityTier.MEDIUM
    assert settings.resolution == "original"
    assert verdict.needs_downscale
    assert "4898:3266" in caplog.text


def test_apply_never_overrides_explicit_resolution():
    settings = CompressionSettings(QualityTier.SPEED, "png", "1920:1080")
    effective, verdict = governor.apply(MediaKind.IMAGE, settings, ImageGeometry(10000, 10000))
    assert effective is settings
    assert verdict is None


def test_apply_ignores_video():
    settings = CompressionSettings(QualityTier.SPEED, "mp4")
    effective, verdict = governor.apply(MediaKind.VIDEO, settings, ImageGeometry(10000, 10000))
    assert effective is settings
    assert verdict is None
