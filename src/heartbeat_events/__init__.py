"""Bounded in-process history of heartbeat outcomes."""

from .history import (
    HeartbeatEventError,
    HeartbeatEventLog,
    Subscription,
    clear_heartbeat_event_history,
    emit_heartbeat_event,
    get_default_log,
    get_heartbeat_event_history,
    get_last_heartbeat_event,
    on_heartbeat_event,
    set_default_log,
)
from .model import (
    HEARTBEAT_HISTORY_MAX,
    HeartbeatEvent,
    HeartbeatStatus,
    IndicatorType,
    resolve_indicator_type,
)

__version__ = "0.1.0"

__all__ = [
    "HEARTBEAT_HISTORY_MAX",
    "HeartbeatEvent",
    "HeartbeatEventError",
    "HeartbeatEventLog",
    "HeartbeatStatus",
    "IndicatorType",
    "Subscription",
    "clear_heartbeat_event_history",
    "emit_heartbeat_event",
    "get_default_log",
    "get_heartbeat_event_history",
    "get_last_heartbeat_event",
    "on_heartbeat_event",
    "resolve_indicator_type",
    "set_default_log",
]
