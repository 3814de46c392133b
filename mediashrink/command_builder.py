"""
mediashrink.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Compiles CompressionSettings into the engine's directive list (plain
list[str], ffmpeg argument syntax).

Keeping directive construction separate means you can:
  - log / print the exact directives before running them
  - paste them straight into a terminal for debugging
  - unit-test flag generation without running any process

Order matters: the engine reads the list positionally, so the input comes
first, per-output options follow, and the output name is always last.
"""

from __future__ import annotations

from mediashrink.models import CompressionSettings, MediaKind, QualityTier
from mediashrink.presets import (
    AUDIO_CODEC,
    IMAGE_SCALE_FLAGS,
    JPEG_QSCALE,
    PNG_COMPRESSION,
    SPEED_X264_PARAMS,
    VIDEO_CODEC,
    VIDEO_TIER_PRESETS,
    WEBP_FASTEST_METHOD,
    WEBP_QUALITY,
)

DEFAULT_INPUT_NAME = "input"


def build_directives(
    kind: MediaKind,
    settings: CompressionSettings,
    input_name: str = DEFAULT_INPUT_NAME,
    output_name: str | None = None,
) -> list[str]:
    """
    Build the directive list for one job.

    Pure: the same arguments always produce an equal, freshly built list.
    *output_name* defaults to ``output.<format>``.
    """
    if output_name is None:
        output_name = f"output.{settings.output_format}"

    if kind is MediaKind.VIDEO:
        return _build_video(settings, input_name, output_name)
    return _build_image(settings, input_name, output_name)


def directives_as_string(directives: list[str]) -> str:
    """Human-readable version of the directives for logging."""
    return " ".join(directives)


# ── Video ─────────────────────────────────────────────────────────────────────

def _build_video(settings: CompressionSettings, input_name: str, output_name: str) -> list[str]:
    """
    Structure:
        -i <input>
        -c:v libx264 -crf <n> -preset <p>
        [-x264-params <restricted motion search>]     ← speed tier only
        -tune zerolatency|fastdecode
        [-s W:H]                                      ← explicit size only
        -c:a aac
        -threads 0                                    ← engine picks the count
        [-movflags +faststart]                        ← speed tier only
        <output>
    """
    tier   = VIDEO_TIER_PRESETS[settings.quality]
    speedy = settings.quality is QualityTier.SPEED

    args = [
        "-i", input_name,
        "-c:v", VIDEO_CODEC,
        "-crf", str(tier.crf),
        "-preset", tier.x264_preset,
    ]
    if speedy:
        args += ["-x264-params", SPEED_X264_PARAMS]
    args += ["-tune", tier.tune]

    if not settings.keeps_resolution:
        args += ["-s", settings.resolution]

    args += ["-c:a", AUDIO_CODEC, "-threads", "0"]

    if speedy:
        args += ["-movflags", "+faststart"]

    args.append(output_name)
    return args


# ── Image ─────────────────────────────────────────────────────────────────────

def _build_image(settings: CompressionSettings, input_name: str, output_name: str) -> list[str]:
    """
    Structure:
        -i <input>
        -threads 1                                ← single-threaded, small footprint
        [<format quality directive>]
        [-vf scale=W:H:flags=lanczos]             ← explicit or governed size
        -an -sn                                   ← drop audio and subtitles
        <output>
    """
    args = ["-i", input_name, "-threads", "1"]
    args += _image_quality_args(settings.output_format, settings.quality)

    if not settings.keeps_resolution:
        args += ["-vf", f"scale={settings.resolution}:flags={IMAGE_SCALE_FLAGS}"]

    args += ["-an", "-sn", output_name]
    return args


def _image_quality_args(fmt: str, quality: QualityTier) -> list[str]:
    bucket = QualityTier.LOW if quality is QualityTier.SPEED else quality

    if fmt == "jpeg":
        return ["-q:v", str(JPEG_QSCALE[bucket])]
    if fmt == "webp":
        args = ["-quality", str(WEBP_QUALITY[bucket])]
        if quality is QualityTier.SPEED:
            args += ["-compression_level", str(WEBP_FASTEST_METHOD)]
        return args
    if fmt == "png":
        return ["-compression_level", str(PNG_COMPRESSION[bucket])]
    return []
