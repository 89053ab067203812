"""Monitor configuration from environment variables and CLI overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from conduit_monitor.analysis.history import DEFAULT_CAPACITY
from conduit_monitor.extraction.rules import (
    DEFAULT_BENIGN_MARKERS,
    DEFAULT_BROKER_MARKER,
)

ENV_PREFIX = "CONDUIT_MONITOR_"


def _split_markers(raw: str) -> list[str]:
    return [m.strip() for m in raw.split(",") if m.strip()]


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        # Kept invalid so validate() reports it instead of silently defaulting
        return -1


@dataclass
class MonitorConfig:
    """Configuration for the monitor loop."""

    # Container to follow (ignored when log_file is set)
    target: str = "conduit"
    # Tail a file instead of a container
    log_file: str = ""
    # Seconds between refresh cycles
    interval: int = 5
    # Lines fetched per cycle
    batch_lines: int = 2000
    # Raw lines shown at the bottom of the dashboard
    tail_lines: int = 15
    # Upper bound on a single fetch, seconds
    fetch_timeout: int = 5
    # Snapshots retained for trend analysis
    history_size: int = DEFAULT_CAPACITY
    # Error-looking substrings that indicate healthy broker traffic
    benign_markers: list[str] = field(
        default_factory=lambda: list(DEFAULT_BENIGN_MARKERS)
    )
    # Substring logged once the relay reaches the upstream network
    broker_marker: str = DEFAULT_BROKER_MARKER

    @classmethod
    def from_env(cls) -> MonitorConfig:
        """Load configuration from CONDUIT_MONITOR_* environment variables."""
        env = os.environ
        defaults = cls()
        markers = env.get(ENV_PREFIX + "BENIGN_MARKERS")
        return cls(
            target=env.get(ENV_PREFIX + "TARGET", defaults.target),
            log_file=env.get(ENV_PREFIX + "LOG_FILE", ""),
            interval=_int_env("INTERVAL", defaults.interval),
            batch_lines=_int_env("LINES", defaults.batch_lines),
            tail_lines=_int_env("TAIL_LINES", defaults.tail_lines),
            fetch_timeout=_int_env("FETCH_TIMEOUT", defaults.fetch_timeout),
            history_size=_int_env("HISTORY_SIZE", defaults.history_size),
            benign_markers=(
                _split_markers(markers) if markers is not None
                else defaults.benign_markers
            ),
            broker_marker=env.get(ENV_PREFIX + "BROKER_MARKER", defaults.broker_marker),
        )

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if config is valid."""
        errors = []
        if not self.log_file and not self.target:
            errors.append("A target container name or log file is required")
        if self.interval <= 0:
            errors.append(f"Refresh interval must be a positive integer: {self.interval}")
        if self.batch_lines <= 0:
            errors.append(f"Log batch size must be a positive integer: {self.batch_lines}")
        if self.tail_lines < 0:
            errors.append(f"Tail line count cannot be negative: {self.tail_lines}")
        if self.fetch_timeout <= 0:
            errors.append(f"Fetch timeout must be positive: {self.fetch_timeout}")
        if self.history_size <= 0:
            errors.append(f"History size must be positive: {self.history_size}")
        return errors

    @property
    def target_label(self) -> str:
        return self.log_file or self.target
