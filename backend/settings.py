from __future__ import annotations

"""Loading and saving of user settings.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from pathlib import Path
import json
import logging
from typing import Any, List, Dict

from backend import DEFAULT_SWIPE_THRESHOLD

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"

# Default settings to initialize the file on first run.
DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "swipe_threshold", "value": DEFAULT_SWIPE_THRESHOLD, "type": "int"},
]

# Internal cache so settings are only read from disk once.
_settings_cache: List[Dict[str, Any]] | None = None


def load_settings(path: Path | None = None) -> List[Dict[str, Any]]:
    """Load settings from ``path`` or create the defaults there.

    Keys missing from the stored file are filled in from
    :data:`DEFAULT_SETTINGS`.
    """
    path = Path(path or SETTINGS_PATH)
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logging.exception("Could not read settings from %s", path)
            data = None
        if isinstance(data, list):
            known = {item.get("key") for item in data}
            for item in DEFAULT_SETTINGS:
                if item["key"] not in known:
                    data.append(dict(item))
            return data
    defaults = [dict(item) for item in DEFAULT_SETTINGS]
    save_settings(defaults, path)
    return defaults


def save_settings(settings: List[Dict[str, Any]], path: Path | None = None) -> None:
    """Persist ``settings`` to ``path``."""
    path = Path(path or SETTINGS_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_settings() -> List[Dict[str, Any]]:
    """Return the cached settings list, loading from disk if needed."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def reset_cache() -> None:
    global _settings_cache
    _settings_cache = None


def get_value(key: str) -> Any:
    """Fetch the value associated with ``key``."""
    for item in get_settings():
        if item.get("key") == key:
            return item.get("value")
    return None


def set_value(key: str, value: Any) -> None:
    """Update ``key`` with ``value`` and persist the change."""
    settings = get_settings()
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings)
