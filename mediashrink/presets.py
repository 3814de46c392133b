# mediashrink/presets.py

from __future__ import annotations

from dataclasses import dataclass

from mediashrink.models import MediaKind, QualityTier


@dataclass(frozen=True)
class FormatOption:
    value: str
    label: str
    description: str


@dataclass(frozen=True)
class ResolutionOption:
    value: str
    label: str


@dataclass(frozen=True)
class VideoTierPreset:
    crf: int                 # lower = better quality, bigger file
    x264_preset: str
    tune: str


VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"

VIDEO_TIER_PRESETS: dict[QualityTier, VideoTierPreset] = {
    QualityTier.SPEED:  VideoTierPreset(crf=35, x264_preset="ultrafast", tune="zerolatency"),
    QualityTier.LOW:    VideoTierPreset(crf=32, x264_preset="ultrafast", tune="fastdecode"),
    QualityTier.MEDIUM: VideoTierPreset(crf=23, x264_preset="fast",      tune="fastdecode"),
    QualityTier.HIGH:   VideoTierPreset(crf=18, x264_preset="medium",    tune="fastdecode"),
}

# Cheapest motion estimation x264 offers; only used by the speed tier.
SPEED_X264_PARAMS = "me=dia:subme=0:trellis=0"

# Image quality scales, indexed by the low/medium/high bucket.
# The speed tier always lands in the low bucket.
JPEG_QSCALE       = {QualityTier.LOW: 2,  QualityTier.MEDIUM: 5,  QualityTier.HIGH: 8}
WEBP_QUALITY      = {QualityTier.LOW: 40, QualityTier.MEDIUM: 70, QualityTier.HIGH: 90}
PNG_COMPRESSION   = {QualityTier.LOW: 9,  QualityTier.MEDIUM: 6,  QualityTier.HIGH: 3}
WEBP_FASTEST_METHOD = 0

IMAGE_SCALE_FLAGS = "lanczos"

FORMATS: dict[MediaKind, list[FormatOption]] = {
    MediaKind.VIDEO: [
        FormatOption("mp4",  "MP4",  "Compatible"),
        FormatOption("webm", "WebM", "Smaller"),
        FormatOption("avi",  "AVI",  "Uncompressed"),
        FormatOption("mov",  "MOV",  "Apple"),
    ],
    MediaKind.IMAGE: [
        FormatOption("jpeg", "JPEG", "Smaller"),
        FormatOption("png",  "PNG",  "Lossless"),
        FormatOption("webp", "WebP", "Modern"),
        FormatOption("bmp",  "BMP",  "Uncompressed"),
    ],
}

DEFAULT_FORMAT = {
    MediaKind.VIDEO: "mp4",
    MediaKind.IMAGE: "jpeg",
}

DEFAULT_QUALITY = QualityTier.MEDIUM

# Suggested sizes; any positive "W:H" pair is accepted.
RESOLUTIONS: dict[MediaKind, list[ResolutionOption]] = {
    MediaKind.VIDEO: [
        ResolutionOption("original",  "Original"),
        ResolutionOption("1920:1080", "1080p"),
        ResolutionOption("1280:720",  "720p"),
        ResolutionOption("854:480",   "480p"),
        ResolutionOption("640:360",   "360p"),
    ],
    MediaKind.IMAGE: [
        ResolutionOption("original",  "Original"),
        ResolutionOption("1920:1080", "Full HD"),
        ResolutionOption("1280:720",  "HD"),
        ResolutionOption("800:600",   "SVGA"),
        ResolutionOption("640:480",   "VGA"),
    ],
}

MAX_INPUT_MB = {
    MediaKind.VIDEO: 500,
    MediaKind.IMAGE: 50,
}

ACCEPTED_MIME_PREFIX = {
    MediaKind.VIDEO: "video/",
    MediaKind.IMAGE: "image/",
}


def format_values(kind: MediaKind) -> list[str]:
    return [f.value for f in FORMATS[kind]]


# Used when the platform's MIME table doesn't know an extension.
VIDEO_EXTENSIONS: frozenset[str] = frozenset({
    ".mp4", ".mov", ".avi", ".mkv", ".webm",
    ".m4v", ".wmv", ".flv", ".ts", ".mpg", ".mpeg",
})

IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    ".jpg", ".jpeg", ".png", ".webp", ".bmp",
    ".gif", ".tif", ".tiff",
})
