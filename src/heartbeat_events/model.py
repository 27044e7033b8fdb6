"""Heartbeat event types."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Maximum number of heartbeat events retained in memory.
HEARTBEAT_HISTORY_MAX = 50


class HeartbeatStatus(str, Enum):
    SENT = "sent"
    OK_EMPTY = "ok-empty"
    OK_TOKEN = "ok-token"
    SKIPPED = "skipped"
    FAILED = "failed"


class IndicatorType(str, Enum):
    OK = "ok"
    ALERT = "alert"
    ERROR = "error"


def resolve_indicator_type(status: HeartbeatStatus | str) -> IndicatorType | None:
    """Map an outcome status to the UI indicator it should show."""
    match HeartbeatStatus(status):
        case HeartbeatStatus.OK_EMPTY | HeartbeatStatus.OK_TOKEN:
            return IndicatorType.OK
        case HeartbeatStatus.SENT:
            return IndicatorType.ALERT
        case HeartbeatStatus.FAILED:
            return IndicatorType.ERROR
        case HeartbeatStatus.SKIPPED:
            return None


class HeartbeatEvent(BaseModel):
    """One recorded heartbeat outcome.

    ``ts`` is assigned by the event log at ingestion time. Instances are
    frozen; the log hands out the same object from ``last()`` and
    ``history()``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    ts: int = Field(gt=0)
    status: HeartbeatStatus
    to: str | None = None
    account_id: str | None = None
    preview: str | None = None
    duration_ms: float | None = Field(default=None, ge=0)
    has_media: bool | None = None
    reason: str | None = None
    # The channel this heartbeat was sent to.
    channel: str | None = None
    # Whether the message was silently suppressed.
    silent: bool | None = None
    indicator_type: IndicatorType | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return a camelCase JSON-ready dict, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
