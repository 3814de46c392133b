"""
mediashrink.paths
~~~~~~~~~~~~~~~~~
Single source of truth for the engine binaries.
Import these instead of hard-coding strings anywhere else.

Lookup order for each binary:
  1. MEDIASHRINK_FFMPEG / MEDIASHRINK_FFPROBE environment variables
  2. <project root>/bin/ffmpeg, <project root>/bin/ffprobe
  3. whatever is on PATH
"""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

BIN_DIR = PROJECT_ROOT / "bin"

_EXE = ".exe" if sys.platform == "win32" else ""


def locate(name: str) -> Path:
    """Best guess for where binary *name* ("ffmpeg" / "ffprobe") lives."""
    override = os.environ.get(f"MEDIASHRINK_{name.upper()}")
    if override:
        return Path(override)

    bundled = BIN_DIR / f"{name}{_EXE}"
    if bundled.exists():
        return bundled

    found = shutil.which(name)
    return Path(found) if found else bundled


def validate_binary(binary: Path) -> str | None:
    """Return an error string if *binary* is missing/non-executable, else None."""
    if not binary.exists():
        return f"Binary not found: {binary}"
    if not binary.is_file():
        return f"Not a file: {binary}"
    if sys.platform != "win32" and not binary.stat().st_mode & 0o111:
        return f"Not executable: {binary}"
    return None


def resolve_binaries() -> tuple[tuple[Path, Path], list[str]]:
    """
    Return ``((ffmpeg, ffprobe), errors)``.
    An empty error list means both binaries are usable.
    """
    ffmpeg, ffprobe = locate("ffmpeg"), locate("ffprobe")
    errors = [e for e in (validate_binary(ffmpeg), validate_binary(ffprobe)) if e]
    return (ffmpeg, ffprobe), errors
