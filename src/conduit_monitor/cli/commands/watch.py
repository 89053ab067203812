"""Watch command: refreshing dashboard until interrupted."""

from __future__ import annotations

import logging
import signal
from typing import List, Optional

import typer
from rich.console import Console

from conduit_monitor.cli.common import configure_logging, load_config, open_source
from conduit_monitor.monitor.loop import MonitorLoop

logger = logging.getLogger(__name__)
console = Console()


def watch(
    target: Optional[str] = typer.Argument(
        None, help="Container name to monitor. Env: CONDUIT_MONITOR_TARGET"
    ),
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", help="Refresh interval in seconds (default 5)"
    ),
    lines: Optional[int] = typer.Option(
        None, "--lines", "-n", help="Log lines read per refresh (default 2000)"
    ),
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Tail a log file instead of a container"
    ),
    benign_marker: Optional[List[str]] = typer.Option(
        None, "--benign-marker", help="Substring of healthy error-looking lines (repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Continuously monitor the relay and render a live dashboard."""
    configure_logging(verbose)
    config = load_config(target, file, interval, lines, benign_marker)
    source = open_source(config)

    loop = MonitorLoop(source, config)

    def shutdown(sig, frame):
        logger.info("Received signal %d, shutting down", sig)
        loop.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    console.print(f"[blue]Starting monitor for {source.describe()}...[/blue]")
    loop.run()
    console.print()
    console.print(f"[green]Monitor stopped[/green] after {loop.cycles} refresh(es)")
