"""Shared CLI helpers: logging setup, config overrides, source selection."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

import typer
from rich.console import Console

from conduit_monitor.config.settings import MonitorConfig
from conduit_monitor.source.errors import LogSourceError
from conduit_monitor.source.log_source import DockerLogSource, FileLogSource, LogSource

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

EXIT_UNREACHABLE = 1
EXIT_CONFIG = 1
EXIT_SOURCE_INIT = 2

err_console = Console(stderr=True)


def configure_logging(verbose: bool, default_level: int = logging.WARNING) -> None:
    # stderr keeps log records out of the dashboard on stdout
    logging.basicConfig(
        level=logging.DEBUG if verbose else default_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def load_config(
    target: Optional[str] = None,
    log_file: Optional[str] = None,
    interval: Optional[int] = None,
    lines: Optional[int] = None,
    benign_markers: Optional[Sequence[str]] = None,
) -> MonitorConfig:
    """Environment config with CLI overrides applied; exits on invalid values."""
    config = MonitorConfig.from_env()
    if target:
        config.target = target
    if log_file:
        config.log_file = log_file
    if interval is not None:
        config.interval = interval
    if lines is not None:
        config.batch_lines = lines
    if benign_markers:
        config.benign_markers = [m for m in benign_markers if m.strip()]

    errors = config.validate()
    if errors:
        for err in errors:
            err_console.print(f"[red]Config error: {err}[/red]")
        raise typer.Exit(EXIT_CONFIG)
    return config


def open_source(config: MonitorConfig) -> LogSource:
    """Build the log source and confirm the target is reachable."""
    try:
        if config.log_file:
            source: LogSource = FileLogSource(config.log_file)
        else:
            source = DockerLogSource(config.target, timeout=config.fetch_timeout)
    except LogSourceError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(EXIT_SOURCE_INIT)

    if not source.is_reachable():
        err_console.print(f"[red]Error: {source.describe()} is not running![/red]")
        if not config.log_file:
            err_console.print(
                f"[dim]Start it first, e.g. docker start {config.target}[/dim]"
            )
        raise typer.Exit(EXIT_UNREACHABLE)
    return source
