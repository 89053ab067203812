"""Errors raised by log source collaborators."""

from __future__ import annotations


class LogSourceError(Exception):
    """The log source cannot be used at all (e.g. missing docker binary)."""


class TargetUnreachableError(LogSourceError):
    """The monitored container or file is not running / does not exist."""

    def __init__(self, target: str, detail: str = "") -> None:
        self.target = target
        message = f"Target is not running: {target}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class LogFetchError(LogSourceError):
    """A single fetch failed or timed out; retried on the next cycle."""
