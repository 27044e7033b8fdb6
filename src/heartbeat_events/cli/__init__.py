"""Command line entry point."""

from __future__ import annotations

import typer

from .replay import limits, replay

app = typer.Typer(
    help="Inspect heartbeat event histories.",
    no_args_is_help=True,
)
app.command("replay")(replay)
app.command("limits")(limits)

__all__ = ["app"]
