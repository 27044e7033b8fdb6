"""CLI commands for replaying recorded heartbeat outcomes."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..config import ConfigError
from ..history import HeartbeatEventError, HeartbeatEventLog
from ..logging import get_logger, setup_logging
from ..model import HeartbeatEvent
from ..settings import HeartbeatEventsSettings, load_settings
from ..status import format_event, format_summary, summarize_history

logger = get_logger(__name__)


def _load_settings_or_exit(config: Path | None) -> HeartbeatEventsSettings:
    try:
        settings, _ = load_settings(config)
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    return settings


def _replay_file(log: HeartbeatEventLog, path: Path) -> int:
    """Emit every JSON line of ``path`` into ``log``; return the count."""
    count = 0
    with open(path, "rb") as f:
        for lineno, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as exc:
                typer.echo(f"error: line {lineno}: invalid UTF-8: {exc}", err=True)
                raise typer.Exit(code=1) from exc
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                typer.echo(f"error: line {lineno}: invalid JSON: {exc}", err=True)
                raise typer.Exit(code=1) from exc
            if not isinstance(payload, dict):
                typer.echo(f"error: line {lineno}: expected a JSON object", err=True)
                raise typer.Exit(code=1)
            try:
                log.emit(payload)
            except HeartbeatEventError as exc:
                typer.echo(f"error: line {lineno}: {exc}", err=True)
                raise typer.Exit(code=1) from exc
            count += 1
    return count


def replay(
    path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON-lines file of heartbeat event payloads.",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-n",
        help="Show only the N most recent events.",
    ),
    max_history: int | None = typer.Option(
        None,
        "--max-history",
        min=1,
        help="Override the retained history size.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Settings file (TOML).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print history as a JSON array.",
    ),
    echo: bool = typer.Option(
        False,
        "--echo",
        help="Print each event as it is ingested.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging.",
    ),
) -> None:
    """Replay heartbeat events into a fresh log and show what it retains."""
    settings = _load_settings_or_exit(config)
    setup_logging(debug=debug or settings.debug, fmt=settings.log_format)

    if max_history is not None:
        settings = settings.model_copy(update={"max_history": max_history})
    log = HeartbeatEventLog.from_settings(settings)

    if echo:
        log.subscribe(lambda event: typer.echo(f"+ {format_event(event)}"))

    count = _replay_file(log, path)
    logger.debug(
        "heartbeat.replay.done",
        path=str(path),
        ingested=count,
        retained=len(log),
    )

    events: tuple[HeartbeatEvent, ...] = log.history(limit)
    if as_json:
        typer.echo(json.dumps([event.to_payload() for event in events], indent=2))
        return

    for event in events:
        typer.echo(format_event(event))
    if events:
        typer.echo("")
    typer.echo(format_summary(summarize_history(log.history())))


def limits(
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Settings file (TOML).",
    ),
) -> None:
    """Show the effective history capacity."""
    settings = _load_settings_or_exit(config)
    typer.echo(f"max_history={settings.max_history}")
    typer.echo(f"clear_listeners_on_reset={str(settings.clear_listeners_on_reset).lower()}")
