"""Declarative field extraction rules.

Each rule names a snapshot field, the pattern that locates it in a log line,
how the captured text is parsed and how occurrences across the batch are
aggregated. Adding a field means adding a row here, not a new code path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from conduit_monitor.extraction.units import parse_bytes, parse_count

DEFAULT_BENIGN_MARKERS = ("limited", "no match")
DEFAULT_BROKER_MARKER = "[OK] Connected to Psiphon network"


class Aggregation(str, Enum):
    LAST = "last"  # value from the most recent matching line
    MAX = "max"  # maximum over all matching lines
    COUNT = "count"  # number of matching lines
    ANY = "any"  # True if any line matches


def _text(raw: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError("empty value")
    return value


@dataclass(frozen=True)
class FieldRule:
    field: str
    pattern: re.Pattern
    aggregation: Aggregation
    parse: Optional[Callable[[str], object]] = None
    # Skip lines that match a benign marker (counters only)
    exclude_benign: bool = False


# [STATS] Connecting: 3 | Connected: 2 | Up: 1.2 MB | Down: 15 MB | Uptime: 1h2m
CONNECTING_PATTERN = re.compile(r"\bConnecting\s*[:=]\s*(\d+)", re.IGNORECASE)
CONNECTED_PATTERN = re.compile(r"\bConnected\s*[:=]\s*(\d+)", re.IGNORECASE)
# Short labels are case-sensitive so prose like "warm up:" is not picked up
UP_PATTERN = re.compile(r"\bUp\s*[:=]\s*([^|]*)")
DOWN_PATTERN = re.compile(r"\bDown\s*[:=]\s*([^|]*)")
UPTIME_PATTERN = re.compile(r"\bUptime\s*[:=]\s*([^|]*)", re.IGNORECASE)

STATS_PATTERN = re.compile(r"\[STATS\]", re.IGNORECASE)
ANNOUNCE_PATTERN = re.compile(r"announc", re.IGNORECASE)
ERROR_PATTERN = re.compile(r"error", re.IGNORECASE)
WARNING_PATTERN = re.compile(r"warn", re.IGNORECASE)
FATAL_PATTERN = re.compile(r"fatal|panic", re.IGNORECASE)


def marker_pattern(markers: Iterable[str]) -> Optional[re.Pattern]:
    """Case-insensitive substring alternation, or None for no markers."""
    cleaned = [m.strip() for m in markers if m and m.strip()]
    if not cleaned:
        return None
    return re.compile("|".join(re.escape(m) for m in cleaned), re.IGNORECASE)


def build_rules(broker_marker: str = DEFAULT_BROKER_MARKER) -> list[FieldRule]:
    """Return the extraction table for the relay's log format."""
    rules = [
        FieldRule("connecting_count", CONNECTING_PATTERN, Aggregation.LAST, parse_count),
        FieldRule("connected_count", CONNECTED_PATTERN, Aggregation.LAST, parse_count),
        FieldRule("upload_bytes", UP_PATTERN, Aggregation.LAST, parse_bytes),
        FieldRule("download_bytes", DOWN_PATTERN, Aggregation.LAST, parse_bytes),
        FieldRule("process_uptime", UPTIME_PATTERN, Aggregation.LAST, _text),
        FieldRule("peak_connecting", CONNECTING_PATTERN, Aggregation.MAX, parse_count),
        FieldRule("peak_connected", CONNECTED_PATTERN, Aggregation.MAX, parse_count),
        FieldRule("stats_event_count", STATS_PATTERN, Aggregation.COUNT),
        FieldRule("announce_count", ANNOUNCE_PATTERN, Aggregation.COUNT),
        FieldRule("error_count", ERROR_PATTERN, Aggregation.COUNT, exclude_benign=True),
        FieldRule("warning_count", WARNING_PATTERN, Aggregation.COUNT, exclude_benign=True),
        FieldRule("fatal_count", FATAL_PATTERN, Aggregation.COUNT),
    ]
    broker = marker_pattern([broker_marker])
    if broker is not None:
        rules.append(FieldRule("broker_connected", broker, Aggregation.ANY))
    return rules
