"""
mediashrink.utils
~~~~~~~~~~~~~~~~~
Small formatting helpers for progress and result summaries.
"""

from __future__ import annotations

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """
    Human-readable size using 1024-based units.

        0       → "0 Bytes"
        1536    → "1.5 KB"
        5242880 → "5 MB"
    """
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def format_time(seconds: float) -> str:
    if seconds < 60:
        return f"{round(seconds)}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {round(seconds % 60)}s"


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Fraction of *original_size* saved; 0.0 when the original is empty."""
    if original_size <= 0:
        return 0.0
    return 1 - compressed_size / original_size
