"""
mediashrink.validation
~~~~~~~~~~~~~~~~~~~~~~
Boundary checks: loose caller input in, validated domain types out.
Everything here raises ValidationError and never touches the engine.
"""

from __future__ import annotations

import mimetypes
import re
from collections.abc import Mapping
from pathlib import Path

from mediashrink.errors import ValidationError
from mediashrink.models import (
    ORIGINAL_RESOLUTION,
    CompressionSettings,
    MediaKind,
    QualityTier,
)
from mediashrink.presets import (
    ACCEPTED_MIME_PREFIX,
    DEFAULT_FORMAT,
    DEFAULT_QUALITY,
    IMAGE_EXTENSIONS,
    MAX_INPUT_MB,
    VIDEO_EXTENSIONS,
    format_values,
)

_RESOLUTION_RE = re.compile(r"^(\d+):(\d+)$")


# ── Enums ─────────────────────────────────────────────────────────────────────

def parse_kind(value: MediaKind | str) -> MediaKind:
    if isinstance(value, MediaKind):
        return value
    try:
        return MediaKind(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown media kind: {value!r}") from None


def parse_quality(value: QualityTier | str) -> QualityTier:
    if isinstance(value, QualityTier):
        return value
    try:
        return QualityTier(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in QualityTier)
        raise ValidationError(
            f"Unknown quality tier: {value!r} (expected one of {allowed})"
        ) from None


# ── Resolution ────────────────────────────────────────────────────────────────

def parse_resolution(value: str) -> tuple[int, int] | None:
    """
    Return ``(width, height)`` for a ``"W:H"`` string, or None for
    ``"original"``. Both dimensions must be positive integers.
    """
    text = str(value).strip()
    if text == ORIGINAL_RESOLUTION:
        return None
    match = _RESOLUTION_RE.match(text)
    if not match:
        raise ValidationError(f"Resolution must be 'original' or 'W:H', got {value!r}")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise ValidationError(f"Resolution dimensions must be positive, got {value!r}")
    return width, height


# ── Settings ──────────────────────────────────────────────────────────────────

def parse_settings(
    kind: MediaKind | str,
    raw: CompressionSettings | Mapping,
) -> CompressionSettings:
    """
    Validate *raw* for *kind* and return a CompressionSettings.

    *raw* may be an existing CompressionSettings (re-checked against the
    kind) or a mapping with ``quality``, ``format`` and ``resolution`` keys.
    Missing keys fall back to the defaults for the kind.
    """
    kind = parse_kind(kind)

    if isinstance(raw, CompressionSettings):
        quality, fmt, resolution = raw.quality, raw.output_format, raw.resolution
    elif isinstance(raw, Mapping):
        quality    = raw.get("quality", DEFAULT_QUALITY)
        fmt        = raw.get("format", raw.get("output_format", DEFAULT_FORMAT[kind]))
        resolution = raw.get("resolution", ORIGINAL_RESOLUTION)
    else:
        raise ValidationError(f"Unsupported settings object: {type(raw).__name__}")

    fmt = str(fmt).strip().lower()
    if fmt not in format_values(kind):
        raise ValidationError(
            f"Format {fmt!r} is not valid for {kind.value} "
            f"(expected one of {', '.join(format_values(kind))})"
        )

    resolution = str(resolution).strip()
    parse_resolution(resolution)

    return CompressionSettings(
        quality=parse_quality(quality),
        output_format=fmt,
        resolution=resolution,
    )


# ── Input file ────────────────────────────────────────────────────────────────

def validate_input(kind: MediaKind, data: bytes) -> None:
    if not data:
        raise ValidationError("Input file is empty")
    limit_mb = MAX_INPUT_MB[kind]
    if len(data) > limit_mb * 1024 * 1024:
        raise ValidationError(
            f"Input is larger than the {limit_mb} MB limit for {kind.value} files"
        )


def input_extension(filename: str) -> str:
    """Extension of *filename* without the dot, used to name the staged input."""
    ext = Path(filename).suffix.lstrip(".").lower()
    if not ext:
        raise ValidationError(f"Cannot tell the input type of {filename!r}: no extension")
    return ext


def guess_kind(filename: str) -> MediaKind:
    """Pick the media kind from the file's MIME type (``video/*`` or ``image/*``)."""
    mime, _ = mimetypes.guess_type(filename)
    for kind, prefix in ACCEPTED_MIME_PREFIX.items():
        if mime and mime.startswith(prefix):
            return kind

    suffix = Path(filename).suffix.lower()
    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if suffix in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    raise ValidationError(f"{Path(filename).name} is neither a video nor an image")
