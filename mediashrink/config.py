"""
mediashrink.config
~~~~~~~~~~~~~~~~~~
Persists the last-used CompressionSettings for each media kind to a JSON
file in the platform's standard config directory.

Config location
---------------
  Windows  : %APPDATA%\\MediaShrink\\settings.json
  macOS    : ~/Library/Application Support/MediaShrink/settings.json
  Linux    : ~/.config/MediaShrink/settings.json

Stored settings are re-validated on load; anything that no longer parses
falls back to the defaults for that kind.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from mediashrink.errors import ValidationError
from mediashrink.models import ORIGINAL_RESOLUTION, CompressionSettings, MediaKind
from mediashrink.presets import DEFAULT_FORMAT, DEFAULT_QUALITY
from mediashrink.validation import parse_settings

log = logging.getLogger(__name__)


# ── Config directory ──────────────────────────────────────────────────────────

def _config_dir() -> Path:
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"
    return base / "MediaShrink"


CONFIG_DIR    = _config_dir()
SETTINGS_FILE = CONFIG_DIR / "settings.json"


# ── Public API ────────────────────────────────────────────────────────────────

def default_settings(kind: MediaKind) -> CompressionSettings:
    return CompressionSettings(
        quality=DEFAULT_QUALITY,
        output_format=DEFAULT_FORMAT[kind],
        resolution=ORIGINAL_RESOLUTION,
    )


def load_settings(kind: MediaKind, path: Path | None = None) -> CompressionSettings:
    """
    Return the saved settings for *kind*, or the defaults if the file is
    missing, unreadable, or holds nothing valid for that kind.
    """
    stored = _read(path or SETTINGS_FILE).get(kind.value)
    if not isinstance(stored, dict):
        return default_settings(kind)
    try:
        return parse_settings(kind, stored)
    except ValidationError as exc:
        log.warning("Ignoring saved %s settings: %s", kind.value, exc)
        return default_settings(kind)


def save_settings(kind: MediaKind, settings: CompressionSettings, path: Path | None = None) -> None:
    """
    Store *settings* for *kind*, keeping whatever is saved for other kinds.
    I/O errors are logged so a config issue never fails a job.
    """
    path = path or SETTINGS_FILE
    payload = _read(path)
    payload[kind.value] = settings.to_dict()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        log.warning("Could not save settings to %s: %s", path, exc)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _read(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("Could not read settings from %s: %s", path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}
