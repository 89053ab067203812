"""Data models for the extraction layer."""

from __future__ import annotations

from dataclasses import dataclass, field

UNKNOWN_UPTIME = "unknown"


@dataclass
class MetricSnapshot:
    """Metrics parsed from one batch of log lines.

    Every field has a default so an empty or unrecognizable batch still
    yields a complete snapshot.
    """

    # Current values (last occurrence in the batch)
    connecting_count: int = 0
    connected_count: int = 0
    upload_bytes: int = 0
    download_bytes: int = 0
    process_uptime: str = UNKNOWN_UPTIME

    # Maxima across the batch
    peak_connecting: int = 0
    peak_connected: int = 0

    # Line counters
    broker_connected: bool = False
    stats_event_count: int = 0
    announce_count: int = 0
    benign_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    fatal_count: int = 0

    # Names of current-value fields actually present in the batch
    observed: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_activity(self) -> bool:
        return bool(
            self.connecting_count
            or self.connected_count
            or self.peak_connected
            or self.download_bytes
            or self.upload_bytes
            or self.stats_event_count
            or self.announce_count
            or self.benign_count
            or self.broker_connected
        )

    def to_dict(self) -> dict:
        return {
            "connecting_count": self.connecting_count,
            "connected_count": self.connected_count,
            "peak_connecting": self.peak_connecting,
            "peak_connected": self.peak_connected,
            "upload_bytes": self.upload_bytes,
            "download_bytes": self.download_bytes,
            "process_uptime": self.process_uptime,
            "broker_connected": self.broker_connected,
            "stats_event_count": self.stats_event_count,
            "announce_count": self.announce_count,
            "benign_count": self.benign_count,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "fatal_count": self.fatal_count,
        }
