"""Logging setup for the command-line entry point.

The screen belongs to the picker, so log records go to a file under the
platform log directory. Library callers get no handlers at all.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import user_log_dir

from .config import APP_NAME

LOG_ENV = "LAZYPICKER_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def log_path() -> Path:
    override = os.environ.get(LOG_ENV)
    if override:
        return Path(override).expanduser()
    return Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"


def configure_logging(verbosity: int = 0) -> Path | None:
    """Attach a file handler to the package logger; return the log path.

    ``verbosity`` 0 logs warnings, 1 info, 2 or more debug. Returns ``None``
    when the log file cannot be opened; logging is then left unconfigured.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    path = log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger("lazypicker")
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return path


__all__ = ["configure_logging", "log_path"]
