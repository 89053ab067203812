"""Snapshot command: run a single cycle and print it once."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import typer
from rich.console import Console

from conduit_monitor.cli.common import configure_logging, load_config, open_source
from conduit_monitor.monitor.loop import MonitorLoop
from conduit_monitor.reporting.dashboard import DashboardRenderer
from conduit_monitor.reporting.models import DashboardView

console = Console()


def snapshot(
    target: Optional[str] = typer.Argument(
        None, help="Container name to inspect. Env: CONDUIT_MONITOR_TARGET"
    ),
    lines: Optional[int] = typer.Option(
        None, "--lines", "-n", help="Log lines to analyze (default 2000)"
    ),
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Read a log file instead of a container"
    ),
    benign_marker: Optional[List[str]] = typer.Option(
        None, "--benign-marker", help="Substring of healthy error-looking lines (repeatable)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Analyze the current log window once and exit."""
    configure_logging(verbose, default_level=logging.INFO)
    config = load_config(target, file, None, lines, benign_marker)
    source = open_source(config)

    loop = MonitorLoop(
        source, config, renderer=DashboardRenderer(console=console, clear=False)
    )
    view = loop.run_once()

    if as_json:
        typer.echo(json.dumps(_view_to_dict(view), indent=2))
    else:
        loop.render(view)

    if view.degraded:
        raise typer.Exit(1)


def _view_to_dict(view: DashboardView) -> dict:
    result = {
        "target": view.target,
        "timestamp": view.timestamp.isoformat(timespec="seconds"),
        "reachable": view.reachable,
        "error": view.fetch_error or None,
    }
    if view.snapshot is not None:
        result.update({
            "status": view.status.value if view.status else None,
            "description": view.description,
            "score": view.score,
            "metrics": view.snapshot.to_dict(),
        })
    return result
