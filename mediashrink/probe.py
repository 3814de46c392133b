"""
mediashrink.probe
~~~~~~~~~~~~~~~~~
Input inspection.

  probe_image_geometry  reads the image header from bytes with Pillow,
                        no decode and no engine round-trip
  probe_duration        thin wrapper around the ffprobe CLI, used by the
                        ffmpeg engine to turn timestamps into progress
"""

from __future__ import annotations

import io
import json
import logging
import subprocess
import warnings
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from mediashrink.errors import ValidationError
from mediashrink.models import ImageGeometry

log = logging.getLogger(__name__)


# ── Public API ────────────────────────────────────────────────────────────────

def probe_image_geometry(data: bytes) -> ImageGeometry:
    """
    Return the pixel dimensions of the image encoded in *data*.

    Raises:
        ValidationError – if the bytes are not an image Pillow can read
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
    except Image.DecompressionBombError as exc:
        raise ValidationError(f"Image too large to process safely: {exc}") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError(f"Could not read image dimensions: {exc}") from exc

    if width <= 0 or height <= 0:
        raise ValidationError(f"Image reports invalid dimensions {width}x{height}")

    log.debug("Probed image geometry %dx%d", width, height)
    return ImageGeometry(width=width, height=height)


def probe_duration(ffprobe: Path, file: Path) -> float:
    """
    Duration of *file* in seconds.
    Returns 0.0 if the duration cannot be determined (still images included).
    """
    try:
        data = _run_ffprobe(ffprobe, file)
    except (OSError, RuntimeError, ValueError) as exc:
        log.debug("Duration probe failed for %s: %s", file.name, exc)
        return 0.0
    try:
        return float(data.get("format", {}).get("duration", 0.0))
    except (TypeError, ValueError):
        return 0.0


# ── Internal helpers ──────────────────────────────────────────────────────────

def _run_ffprobe(ffprobe: Path, file: Path) -> dict:
    """Execute ffprobe and return parsed JSON output."""
    cmd = [
        str(ffprobe),
        "-v", "quiet",            # suppress banner
        "-print_format", "json",  # machine-readable output
        "-show_format",           # duration, bitrate, etc.
        str(file),
    ]

    result = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
    )

    if result.returncode != 0:
        raise RuntimeError(
            f"ffprobe failed on {file.name}:\n{result.stderr.strip()}"
        )

    return json.loads(result.stdout)
