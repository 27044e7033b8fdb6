"""Render heartbeat events for status surfaces."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .model import HeartbeatEvent, HeartbeatStatus, IndicatorType, resolve_indicator_type

_INDICATOR_GLYPHS: dict[IndicatorType | None, str] = {
    IndicatorType.OK: "\u2705",  # check mark
    IndicatorType.ALERT: "\U0001f514",  # bell
    IndicatorType.ERROR: "\u274c",  # X
    None: "\u23ed",  # skip
}

PREVIEW_MAX_CHARS = 80


@dataclass(slots=True)
class HistorySummary:
    """Aggregate view over a sequence of heartbeat events."""

    total: int = 0
    counts: dict[HeartbeatStatus, int] = field(default_factory=dict)
    last: HeartbeatEvent | None = None
    last_indicator: IndicatorType | None = None
    avg_duration_ms: float | None = None


def format_duration(duration_ms: float) -> str:
    if duration_ms < 1000:
        return f"{int(duration_ms)}ms"
    duration_s = duration_ms / 1000
    if duration_s < 60:
        return f"{duration_s:.1f}s"
    minutes = int(duration_s // 60)
    seconds = int(duration_s % 60)
    return f"{minutes}m{seconds}s"


def format_timestamp(ts: int) -> str:
    return (
        datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
        .isoformat(timespec="seconds")
        .replace("+00:00", "Z")
    )


def event_indicator(event: HeartbeatEvent) -> IndicatorType | None:
    """Explicit indicator if the runner set one, else derived from status."""
    if event.indicator_type is not None:
        return event.indicator_type
    return resolve_indicator_type(event.status)


def format_event(event: HeartbeatEvent) -> str:
    """Format one event as a single status line."""
    glyph = _INDICATOR_GLYPHS[event_indicator(event)]
    parts = [format_timestamp(event.ts), glyph, event.status.value]

    if event.duration_ms is not None:
        parts.append(format_duration(event.duration_ms))

    target = event.channel or ""
    if event.to:
        target = f"{target}:{event.to}" if target else event.to
    if target:
        parts.append(f"-> {target}")

    if event.silent:
        parts.append("(silent)")

    if event.reason:
        parts.append(f"reason={event.reason}")
    elif event.preview:
        preview = event.preview.replace("\n", " ")
        if len(preview) > PREVIEW_MAX_CHARS:
            preview = preview[: PREVIEW_MAX_CHARS - 1] + "…"
        parts.append(f'"{preview}"')

    return " ".join(parts)


def summarize_history(events: Iterable[HeartbeatEvent]) -> HistorySummary:
    counts: Counter[HeartbeatStatus] = Counter()
    durations: list[float] = []
    last: HeartbeatEvent | None = None
    for event in events:
        counts[event.status] += 1
        if event.duration_ms is not None:
            durations.append(event.duration_ms)
        last = event

    return HistorySummary(
        total=sum(counts.values()),
        counts={status: counts[status] for status in HeartbeatStatus if counts[status]},
        last=last,
        last_indicator=event_indicator(last) if last is not None else None,
        avg_duration_ms=sum(durations) / len(durations) if durations else None,
    )


def format_summary(summary: HistorySummary) -> str:
    if summary.total == 0:
        return "No heartbeat events recorded."

    lines = [f"Events: {summary.total}"]
    lines.extend(
        f"  {status.value}: {count}" for status, count in summary.counts.items()
    )
    if summary.avg_duration_ms is not None:
        lines.append(f"Average duration: {format_duration(summary.avg_duration_ms)}")
    if summary.last is not None:
        indicator = summary.last_indicator.value if summary.last_indicator else "none"
        lines.append(f"Last: {format_event(summary.last)} [{indicator}]")
    return "\n".join(lines)
