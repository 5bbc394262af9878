"""Configuration loading utilities for mac-updater."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from .paths import get_config_path

# Load .env file if it exists
load_dotenv()

_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """The configuration file could not be read, parsed or validated."""


@dataclass(frozen=True)
class CustomCommand:
    """A user-defined step: a named list of shell commands."""

    name: str
    commands: Tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class CleanupSettings:
    """Thresholds and switches for the cleanup steps."""

    downloads_days_old: int = 30
    screenshots_days_old: int = 14
    dmg_files_days_old: int = 7
    clear_browser_caches: bool = True
    clear_system_logs: bool = True


@dataclass(frozen=True)
class NotificationSettings:
    """When and what to report at the end of a run."""

    enabled: bool = True
    success_only: bool = False  # only notify when no step failed
    include_stats: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration. Read-only for the whole run."""

    skip_steps: FrozenSet[str] = frozenset()
    custom_commands: Tuple[CustomCommand, ...] = ()
    cleanup_settings: CleanupSettings = field(default_factory=CleanupSettings)
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        if not isinstance(payload, dict):
            raise ConfigurationError("configuration root must be a table")
        _reject_unknown("top level", payload, (f.name for f in fields(cls)))

        skip_steps = payload.get("skip_steps", [])
        if not isinstance(skip_steps, list) or not all(isinstance(s, str) for s in skip_steps):
            raise ConfigurationError("skip_steps must be a list of strings")

        raw_commands = payload.get("custom_commands", [])
        if not isinstance(raw_commands, list):
            raise ConfigurationError("custom_commands must be a list of tables")
        custom_commands = tuple(
            _parse_custom_command(i, entry) for i, entry in enumerate(raw_commands)
        )

        cleanup = _parse_section("cleanup_settings", CleanupSettings, payload.get("cleanup_settings", {}))
        for name in ("downloads_days_old", "screenshots_days_old", "dmg_files_days_old"):
            if getattr(cleanup, name) < 0:
                raise ConfigurationError(f"cleanup_settings.{name} must not be negative")

        notification = _parse_section(
            "notification_settings", NotificationSettings, payload.get("notification_settings", {})
        )

        return cls(
            skip_steps=frozenset(skip_steps),
            custom_commands=custom_commands,
            cleanup_settings=cleanup,
            notification_settings=notification,
        )


def _reject_unknown(section: str, payload: Dict[str, Any], known) -> None:
    unknown = sorted(set(payload) - set(known))
    if unknown:
        raise ConfigurationError(f"unknown key(s) in {section}: {', '.join(unknown)}")


def _parse_custom_command(index: int, entry: Any) -> CustomCommand:
    where = f"custom_commands[{index}]"
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where} must be a table")
    _reject_unknown(where, entry, ("name", "commands", "enabled"))

    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"{where}.name must be a non-empty string")
    commands = entry.get("commands", [])
    if not isinstance(commands, list) or not all(isinstance(c, str) for c in commands):
        raise ConfigurationError(f"{where}.commands must be a list of strings")
    enabled = entry.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigurationError(f"{where}.enabled must be a boolean")

    return CustomCommand(name=name, commands=tuple(commands), enabled=enabled)


def _parse_section(section: str, section_cls, payload: Any):
    if not isinstance(payload, dict):
        raise ConfigurationError(f"{section} must be a table")
    defaults = section_cls()
    _reject_unknown(section, payload, (f.name for f in fields(section_cls)))

    values = {}
    for f in fields(section_cls):
        default = getattr(defaults, f.name)
        value = payload.get(f.name, default)
        # bool is a subclass of int, so compare exact types
        if type(value) is not type(default):
            raise ConfigurationError(
                f"{section}.{f.name} must be of type {type(default).__name__}"
            )
        values[f.name] = value
    return section_cls(**values)


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Environment variables take priority over the config file.

    - MAC_UPDATER_SKIP_STEPS: comma separated step descriptions to skip
    - MAC_UPDATER_NOTIFICATIONS: set to 0/false/no/off to disable notifications
    """
    env_skip = os.getenv("MAC_UPDATER_SKIP_STEPS")
    if env_skip:
        extra = {item.strip() for item in env_skip.split(",") if item.strip()}
        config = replace(config, skip_steps=config.skip_steps | extra)

    env_notify = os.getenv("MAC_UPDATER_NOTIFICATIONS")
    if env_notify is not None and env_notify.strip().lower() in _FALSE_VALUES:
        config = replace(
            config,
            notification_settings=replace(config.notification_settings, enabled=False),
        )
    return config


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    A missing file at the default location yields the default configuration.
    A file given explicitly must exist. Read, parse and validation failures
    raise ConfigurationError.
    """
    candidate = Path(path).expanduser() if path else get_config_path()

    if not candidate.exists():
        if path:
            raise ConfigurationError(f"configuration file not found: {candidate}")
        return _apply_env_overrides(AppConfig())

    try:
        with candidate.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"could not parse {candidate}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"could not read {candidate}: {exc}") from exc

    return _apply_env_overrides(AppConfig.from_dict(data))
