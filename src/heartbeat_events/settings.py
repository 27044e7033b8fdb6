"""Settings for the event log and its CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import ConfigError, ensure_table, read_config
from .model import HEARTBEAT_HISTORY_MAX

ENV_PREFIX = "HEARTBEAT_EVENTS_"
CONFIG_ENV_VAR = "HEARTBEAT_EVENTS_CONFIG"
CONFIG_TABLE = "heartbeat_events"


class HeartbeatEventsSettings(BaseSettings):
    """Event log settings.

    Direct construction reads only the environment. Values read from a TOML
    file by ``load_settings`` take precedence over environment variables.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="forbid")

    max_history: int = Field(default=HEARTBEAT_HISTORY_MAX, ge=1)
    clear_listeners_on_reset: bool = False
    debug: bool = False
    log_format: Literal["console", "json"] = "console"


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path | None
) -> HeartbeatEventsSettings:
    try:
        return HeartbeatEventsSettings.model_validate(data)
    except ValidationError as exc:
        where = f" in {config_path}" if config_path is not None else ""
        raise ConfigError(f"Invalid settings{where}: {exc}") from None


def load_settings(
    path: str | Path | None = None,
) -> tuple[HeartbeatEventsSettings, Path | None]:
    """Load settings from ``path``, ``$HEARTBEAT_EVENTS_CONFIG`` or defaults.

    Returns the settings and the config path that was read, if any.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            path = env_path
    if path is None:
        return validate_settings_data({}, config_path=None), None

    config_path = Path(path).expanduser()
    raw = read_config(config_path)
    if CONFIG_TABLE in raw:
        data = ensure_table(raw, CONFIG_TABLE, config_path=config_path)
    else:
        data = raw
    return validate_settings_data(dict(data), config_path=config_path), config_path
