"""
Runtime settings for branded scopes.

Settings are read from a YAML mapping, either an explicit path or the file
named by the BRANDED_CONFIG environment variable:

    debug_checks: true      # run internal invariant assertions
    escape_check: true      # scan scope return values for branded values
    log_level: DEBUG        # level of the "branded" logger (optional)

Unknown keys are reported with a UserWarning and ignored.
"""
from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_ENV_VAR = "BRANDED_CONFIG"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when a settings file cannot be interpreted."""
    pass


@dataclass(frozen=True)
class Settings:
    """
    Process-wide behaviour switches.

    Properties:
        debug_checks:
            Run debug-only invariant assertions on unchecked access paths.
            Ignored (always off) when Python runs with -O.

        escape_check:
            Scan each scope callback's return value for positions or
            containers stamped with that scope's brand.

        log_level:
            Level applied to the "branded" package logger. None leaves
            the logger as the application configured it.
    """

    debug_checks: bool = True
    escape_check: bool = True
    log_level: Optional[str] = None


def settings_from_dict(d: Dict[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    for key in sorted(set(d) - known):
        warnings.warn(f"Unknown setting '{key}' ignored", UserWarning)

    values = {k: v for k, v in d.items() if k in known}
    for key in ("debug_checks", "escape_check"):
        if key in values and not isinstance(values[key], bool):
            raise ConfigError(f"Setting '{key}' must be a boolean, got {values[key]!r}")
    if values.get("log_level") is not None:
        level = str(values["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {values['log_level']!r}")
        values["log_level"] = level
    return Settings(**values)


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: File to read. Defaults to $BRANDED_CONFIG.

    Returns:
        Settings; defaults if no file is configured or the file is empty

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ConfigError: If the document is not a mapping or has bad values
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
        if not path:
            return Settings()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Settings file not found: {path}")

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return settings_from_dict(data)


_settings: Optional[Settings] = None


def _apply_log_level(settings: Settings) -> None:
    if settings.log_level is not None:
        logging.getLogger("branded").setLevel(settings.log_level)


def get_settings() -> Settings:
    """Current settings, loaded lazily from $BRANDED_CONFIG on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
        _apply_log_level(_settings)
    return _settings


def configure(**overrides: Any) -> Settings:
    """Replace individual settings, e.g. configure(debug_checks=False)."""
    global _settings
    current = get_settings()
    _settings = settings_from_dict({**_settings_as_dict(current), **overrides})
    _apply_log_level(_settings)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


def _settings_as_dict(s: Settings) -> Dict[str, Any]:
    return {f.name: getattr(s, f.name) for f in fields(Settings)}
