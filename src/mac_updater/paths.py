"""Unified path constants for mac-updater.

- ~/.config/mac-updater/config.toml   # user configuration
- ~/Library/Logs/mac-updater/         # update.log
- ~/Library/Logs/mac-updater/runs/    # JSON run reports
"""

import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "mac-updater"
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_DIR = Path.home() / "Library" / "Logs" / "mac-updater"
LOG_FILE_NAME = "update.log"
RUNS_DIR_NAME = "runs"


def get_config_path() -> Path:
    """Config file location, honouring MAC_UPDATER_CONFIG."""
    override = os.getenv("MAC_UPDATER_CONFIG")
    if override:
        return Path(override).expanduser()
    return CONFIG_FILE


def get_log_dir() -> Path:
    """Log directory, honouring MAC_UPDATER_LOG_DIR. Created on demand."""
    override = os.getenv("MAC_UPDATER_LOG_DIR")
    log_dir = Path(override).expanduser() if override else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_runs_dir() -> Path:
    """Directory holding one JSON report per run."""
    runs_dir = get_log_dir() / RUNS_DIR_NAME
    runs_dir.mkdir(parents=True, exist_ok=True)
    return runs_dir
