"""Bounded in-memory history of heartbeat outcomes."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .logging import get_logger
from .model import HEARTBEAT_HISTORY_MAX, HeartbeatEvent

if TYPE_CHECKING:
    from .settings import HeartbeatEventsSettings

logger = get_logger(__name__)

_FIELD_NAMES: dict[str, str] = {
    (info.alias or name): name for name, info in HeartbeatEvent.model_fields.items()
}

Listener = Callable[[HeartbeatEvent], object]
ListenerErrorHandler = Callable[[Exception, HeartbeatEvent], object]


class HeartbeatEventError(ValueError):
    """Raised when an ingested payload is not a valid heartbeat event."""


class Subscription:
    """Handle for one listener registration.

    Calling the handle (or ``unsubscribe()``) removes the registration.
    Repeated calls are no-ops.
    """

    __slots__ = ("_log", "listener")

    def __init__(self, log: HeartbeatEventLog, listener: Listener) -> None:
        self._log = log
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._log._is_registered(self)

    def unsubscribe(self) -> None:
        self._log._remove(self)

    def __call__(self) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        state = "active" if self.active else "inactive"
        return f"<Subscription {_listener_name(self.listener)} {state}>"


class HeartbeatEventLog:
    """Retains the most recent heartbeat events and notifies subscribers.

    The log is synchronous and does no locking; hosts that emit from several
    threads must serialise calls themselves.
    """

    def __init__(
        self,
        *,
        max_history: int = HEARTBEAT_HISTORY_MAX,
        now_ms: Callable[[], int] | None = None,
        on_listener_error: ListenerErrorHandler | None = None,
        clear_listeners_on_reset: bool = False,
    ) -> None:
        if max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {max_history}")
        self._max_history = max_history
        self._now_ms = now_ms or _now_ms
        self._on_listener_error = on_listener_error or _log_listener_error
        self._clear_listeners_on_reset = clear_listeners_on_reset
        self._history: deque[HeartbeatEvent] = deque(maxlen=max_history)
        self._last: HeartbeatEvent | None = None
        self._listeners: dict[Subscription, Listener] = {}

    @classmethod
    def from_settings(
        cls,
        settings: HeartbeatEventsSettings,
        *,
        now_ms: Callable[[], int] | None = None,
        on_listener_error: ListenerErrorHandler | None = None,
    ) -> HeartbeatEventLog:
        return cls(
            max_history=settings.max_history,
            now_ms=now_ms,
            on_listener_error=on_listener_error,
            clear_listeners_on_reset=settings.clear_listeners_on_reset,
        )

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def __len__(self) -> int:
        return len(self._history)

    def emit(
        self, payload: Mapping[str, Any] | None = None, /, **fields: Any
    ) -> HeartbeatEvent:
        """Record a heartbeat outcome and notify listeners.

        ``payload`` and ``fields`` are merged (keywords win). The timestamp is
        assigned here; a caller-supplied ``ts`` is rejected.
        """
        data = {**_by_field_name(payload or {}), **_by_field_name(fields)}
        if "ts" in data:
            raise HeartbeatEventError("ts is assigned by the event log")
        if "status" not in data:
            raise HeartbeatEventError("heartbeat event requires a status")
        try:
            event = HeartbeatEvent.model_validate({**data, "ts": int(self._now_ms())})
        except ValidationError as exc:
            raise HeartbeatEventError(f"invalid heartbeat event: {exc}") from exc

        if len(self._history) == self._max_history:
            evicted = self._history[0]
            logger.debug("heartbeat.evicted", ts=evicted.ts, status=evicted.status.value)
        # deque(maxlen=...) drops the oldest entry on overflow
        self._history.append(event)
        self._last = event
        logger.debug(
            "heartbeat.emit",
            status=event.status.value,
            duration_ms=event.duration_ms,
            retained=len(self._history),
        )

        for subscription, listener in list(self._listeners.items()):
            try:
                listener(event)
            except Exception as exc:
                self._report_listener_error(exc, event, subscription)
        return event

    def subscribe(self, listener: Listener) -> Subscription:
        """Register ``listener`` for every future event."""
        subscription = Subscription(self, listener)
        self._listeners[subscription] = listener
        return subscription

    def last(self) -> HeartbeatEvent | None:
        return self._last

    def history(self, limit: int | None = None) -> tuple[HeartbeatEvent, ...]:
        """Return retained events, oldest first.

        ``limit`` keeps only the most recent ``limit`` events; a non-positive
        limit yields an empty tuple.
        """
        if limit is None or limit >= len(self._history):
            return tuple(self._history)
        if limit <= 0:
            return ()
        return tuple(self._history)[-limit:]

    def clear(self, *, listeners: bool | None = None) -> None:
        """Drop all retained events.

        Subscriptions survive unless ``listeners`` is true, or the log was
        built with ``clear_listeners_on_reset=True`` and ``listeners`` is not
        given.
        """
        drop_listeners = (
            self._clear_listeners_on_reset if listeners is None else listeners
        )
        dropped = len(self._history)
        self._history.clear()
        self._last = None
        if drop_listeners:
            self._listeners.clear()
        logger.debug(
            "heartbeat.cleared", dropped=dropped, listeners_dropped=drop_listeners
        )

    def _is_registered(self, subscription: Subscription) -> bool:
        return subscription in self._listeners

    def _remove(self, subscription: Subscription) -> None:
        self._listeners.pop(subscription, None)

    def _report_listener_error(
        self, exc: Exception, event: HeartbeatEvent, subscription: Subscription
    ) -> None:
        try:
            self._on_listener_error(exc, event)
        except Exception as handler_exc:
            logger.error(
                "heartbeat.listener.error_handler_failed",
                listener=_listener_name(subscription.listener),
                error=str(handler_exc),
                original_error=str(exc),
            )


def _log_listener_error(exc: Exception, event: HeartbeatEvent) -> None:
    logger.warning(
        "heartbeat.listener.error",
        status=event.status.value,
        ts=event.ts,
        error=str(exc),
        error_type=type(exc).__name__,
    )


def _by_field_name(data: Mapping[str, Any]) -> dict[str, Any]:
    # Payload keys may use either the field name or its camelCase alias.
    return {_FIELD_NAMES.get(key, key): value for key, value in data.items()}


def _listener_name(listener: Listener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


def _now_ms() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


# Process-wide log for hosts that use the module-level helpers below.
_default_log: HeartbeatEventLog | None = None


def get_default_log() -> HeartbeatEventLog:
    global _default_log
    if _default_log is None:
        _default_log = HeartbeatEventLog()
    return _default_log


def set_default_log(log: HeartbeatEventLog | None) -> None:
    """Replace the process-wide log. ``None`` rebuilds it on next use."""
    global _default_log
    _default_log = log


def emit_heartbeat_event(
    payload: Mapping[str, Any] | None = None, /, **fields: Any
) -> HeartbeatEvent:
    return get_default_log().emit(payload, **fields)


def on_heartbeat_event(listener: Listener) -> Subscription:
    return get_default_log().subscribe(listener)


def get_last_heartbeat_event() -> HeartbeatEvent | None:
    return get_default_log().last()


def get_heartbeat_event_history(
    limit: int | None = None,
) -> tuple[HeartbeatEvent, ...]:
    return get_default_log().history(limit)


def clear_heartbeat_event_history() -> None:
    get_default_log().clear()
