"""Persistent JSON config helpers.

The config file holds option overrides in the same shape ``build_config``
accepts. A missing or malformed file means no overrides.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "lazypicker"
CONFIG_FILENAME = "config.json"
CONFIG_ENV = "LAZYPICKER_CONFIG"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def config_path() -> Path:
    """Return the config path, honouring ``LAZYPICKER_CONFIG`` when set."""
    override = os.environ.get(CONFIG_ENV)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_file = path if path is not None else config_path()
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


__all__ = ["APP_NAME", "DEFAULT_CONFIG_PATH", "config_path", "load_config"]
