"""structlog configuration shared by the library and the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog

LogFormat = Literal["console", "json"]


def setup_logging(*, debug: bool = False, fmt: LogFormat = "console") -> None:
    """Configure structlog for the current process.

    Safe to call more than once; the last call wins.
    """
    level = logging.DEBUG if debug else logging.INFO

    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr per call so redirected streams are honoured.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
