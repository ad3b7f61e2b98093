"""Persistent settings for Dice Duel.

Stores user preferences in ~/.dice_duel_settings.json. Every value is checked
on load; anything malformed falls back to its default so a hand-edited file
can never stop the game from starting. No frontend dependency.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    "target_score": 500,
    "speed": "normal",
    "sound_enabled": True,
    "log_level": "WARNING",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_VALID = {
    "target_score": lambda v: isinstance(v, int) and not isinstance(v, bool) and v > 0,
    "speed": lambda v: v in ("slow", "normal", "fast"),
    "sound_enabled": lambda v: isinstance(v, bool),
    "log_level": lambda v: v in LOG_LEVELS,
}


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".dice_duel_settings.json"


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Known keys with a valid value override DEFAULTS; invalid values are
    logged and replaced by their default. Unknown keys are dropped.
    """
    path = Path(path) if path is not None else _default_path()
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        return dict(DEFAULTS)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        logger.warning("Ignoring unreadable settings file %s", path)
        return dict(DEFAULTS)
    if not isinstance(data, dict):
        return dict(DEFAULTS)

    result = dict(DEFAULTS)
    for key, valid in _VALID.items():
        if key not in data:
            continue
        if valid(data[key]):
            result[key] = data[key]
        else:
            logger.warning("Invalid %s %r in %s, using %r", key, data[key], path, DEFAULTS[key])
    return result


def save_settings(settings, path=None):
    """Write settings dict to JSON via a temp file, so a crash never truncates it.

    Write errors are logged and otherwise ignored.
    """
    path = Path(path) if path is not None else _default_path()
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(json.dumps(settings, indent=2))
        tmp.replace(path)
    except OSError:
        logger.warning("Could not save settings to %s", path, exc_info=True)
