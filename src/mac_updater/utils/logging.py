"""Logging helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..paths import LOG_FILE_NAME, get_log_dir

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"

_LOGGING_CONFIGURED = False


def setup_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """Send all records to ``<log_dir>/update.log``.

    The terminal is left to the progress sinks, so nothing is attached to
    stderr here. Level comes from ``level``, then MAC_UPDATER_LOG_LEVEL,
    then INFO. Returns the log file path.
    """
    global _LOGGING_CONFIGURED
    log_dir = log_dir or get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    level_name = (level or os.getenv("MAC_UPDATER_LOG_LEVEL") or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(root.handlers):
        if getattr(handler, "_mac_updater", False):
            root.removeHandler(handler)
            handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._mac_updater = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    _LOGGING_CONFIGURED = True

    logging.getLogger(__name__).info("Logger initialized at %s", log_file)
    return log_file


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger. Before setup_logging() runs, warnings go to stderr."""
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        existing = list(logging.getLogger().handlers)
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
        for handler in logging.getLogger().handlers:
            if handler not in existing:
                handler._mac_updater = True  # type: ignore[attr-defined]
        _LOGGING_CONFIGURED = True
    return logging.getLogger(name)
