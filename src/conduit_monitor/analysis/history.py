"""Capped in-memory snapshot history and trend detection."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from conduit_monitor.extraction.models import MetricSnapshot

DEFAULT_CAPACITY = 1000
MIN_TREND_ENTRIES = 10
# Download growth above this counts as new traffic
TRANSFER_TREND_THRESHOLD = 10 * 1024

INSUFFICIENT_DATA = "insufficient data"
INCREASING = "increasing"
DECREASING = "decreasing"
FLAT = "flat"
NO_ACTIVITY_YET = "no-activity-yet"


@dataclass
class HistoryEntry:
    timestamp: datetime
    snapshot: MetricSnapshot


@dataclass
class Trend:
    """Change between the oldest retained and the newest history entry."""

    label: str
    entry_count: int
    connected_delta: int = 0
    connecting_delta: int = 0
    download_delta: int = 0
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None

    @property
    def sufficient(self) -> bool:
        return self.label != INSUFFICIENT_DATA


class HistoryTracker:
    """FIFO ring buffer of snapshots.

    Not thread-safe: the monitor loop is the only writer and reader.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        min_entries: int = MIN_TREND_ENTRIES,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)
        self._min_entries = max(2, min_entries)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def append(self, timestamp: datetime, snapshot: MetricSnapshot) -> None:
        self._entries.append(HistoryEntry(timestamp, snapshot))

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def trend(self) -> Trend:
        count = len(self._entries)
        if count < self._min_entries:
            return Trend(label=INSUFFICIENT_DATA, entry_count=count)

        first = self._entries[0]
        last = self._entries[-1]
        old, new = first.snapshot, last.snapshot

        connected_delta = new.connected_count - old.connected_count
        connecting_delta = new.connecting_count - old.connecting_count
        if new.download_bytes >= old.download_bytes:
            download_delta = new.download_bytes - old.download_bytes
        else:
            # Counter reset: everything since the restart is new traffic
            download_delta = new.download_bytes

        if connected_delta > 0 or download_delta > TRANSFER_TREND_THRESHOLD:
            label = INCREASING
        elif connected_delta < 0:
            label = DECREASING
        elif (
            connected_delta == 0
            and download_delta == 0
            and new.connected_count == 0
            and new.download_bytes == 0
        ):
            label = NO_ACTIVITY_YET
        else:
            label = FLAT

        return Trend(
            label=label,
            entry_count=count,
            connected_delta=connected_delta,
            connecting_delta=connecting_delta,
            download_delta=download_delta,
            window_start=first.timestamp,
            window_end=last.timestamp,
        )
