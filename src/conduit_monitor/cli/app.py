"""Typer CLI application."""

import typer

from conduit_monitor.cli.commands.snapshot import snapshot
from conduit_monitor.cli.commands.watch import watch

app = typer.Typer(
    name="conduit-monitor",
    help="Live telemetry and reputation monitor for Conduit relay nodes",
    no_args_is_help=True,
)

app.command()(watch)
app.command()(snapshot)
