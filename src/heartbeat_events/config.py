"""Config file reading."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """Raised for missing, unreadable or invalid configuration."""


def read_config(config_path: Path) -> dict[str, Any]:
    if config_path.exists() and not config_path.is_file():
        raise ConfigError(f"Config path {config_path} exists but is not a file.")
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {config_path}.") from None
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {config_path}: {exc}") from exc
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed TOML in {config_path}: {exc}") from None


def ensure_table(
    config: dict[str, Any],
    key: str,
    *,
    config_path: Path,
    label: str | None = None,
) -> dict[str, Any]:
    """Return the sub-table at ``key``, or an empty dict when it is absent."""
    value = config.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        name = label or key
        raise ConfigError(f"Invalid `{name}` in {config_path}; expected a table.")
    return value
