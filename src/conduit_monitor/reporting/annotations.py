"""Per-line severity annotation for the raw log tail."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from conduit_monitor.extraction.rules import (
    ANNOUNCE_PATTERN,
    DEFAULT_BENIGN_MARKERS,
    DEFAULT_BROKER_MARKER,
    ERROR_PATTERN,
    FATAL_PATTERN,
    STATS_PATTERN,
    WARNING_PATTERN,
    marker_pattern,
)

START_PATTERN = re.compile(r"Starting.*Conduit", re.IGNORECASE)
ACTIVE_PATTERN = re.compile(r"matched|relay|connected.*client", re.IGNORECASE)


@dataclass(frozen=True)
class Annotation:
    label: str
    style: str
    # Whether the whole line is tinted, not just the label
    tint_line: bool = False


FATAL = Annotation("FATAL", "bold red", tint_line=True)
GOOD = Annotation("GOOD", "green", tint_line=True)
ERROR = Annotation("ERROR", "red")
WARN = Annotation("WARN", "yellow")
STATS = Annotation("STATS", "cyan")
OK = Annotation("OK", "bold green", tint_line=True)
START = Annotation("START", "blue")
ACTIVE = Annotation("ACTIVE", "bold cyan", tint_line=True)
INFO = Annotation("INFO", "blue")


class LineAnnotator:
    """Assigns at most one annotation per line, first match wins.

    Fatal beats everything; benign markers beat the error and warning
    checks so broker replies like "rate limited" never show as errors.
    """

    def __init__(
        self,
        benign_markers: Iterable[str] = DEFAULT_BENIGN_MARKERS,
        broker_marker: str = DEFAULT_BROKER_MARKER,
    ) -> None:
        benign = marker_pattern(benign_markers)
        broker = marker_pattern([broker_marker])
        self._checks: list[tuple[Optional[re.Pattern], Annotation]] = [
            (FATAL_PATTERN, FATAL),
            (benign, GOOD),
            (ERROR_PATTERN, ERROR),
            (WARNING_PATTERN, WARN),
            (STATS_PATTERN, STATS),
            (broker, OK),
            (START_PATTERN, START),
            (ACTIVE_PATTERN, ACTIVE),
            (ANNOUNCE_PATTERN, INFO),
        ]

    def annotate(self, line: str) -> Optional[Annotation]:
        for pattern, annotation in self._checks:
            if pattern is not None and pattern.search(line):
                return annotation
        return None
