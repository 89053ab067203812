"""Operational status classification."""

from __future__ import annotations

from enum import Enum

from conduit_monitor.extraction.models import MetricSnapshot

# Downloaded bytes above which a connected node counts as actively relaying
ACTIVE_DOWNLOAD_THRESHOLD = 10 * 1024
# Error lines above which an otherwise idle node is reported as failing
ERROR_THRESHOLD = 10


class Status(str, Enum):
    STARTING = "Starting"
    ANNOUNCING = "Announcing"
    READY = "Ready"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    ACTIVE = "Active"
    ERROR = "Error"


def classify(
    snapshot: MetricSnapshot,
    active_threshold: int = ACTIVE_DOWNLOAD_THRESHOLD,
    error_threshold: int = ERROR_THRESHOLD,
) -> tuple[Status, str]:
    """Map a snapshot to (status, one-line description).

    Rules are evaluated top to bottom and the first match wins, so client
    activity always outranks error noise, and broker replies such as
    "rate limited" read as Ready rather than Error.
    """
    s = snapshot
    if s.connected_count > 0 and s.download_bytes > active_threshold:
        return Status.ACTIVE, (
            f"Actively serving {s.connected_count} client(s) - transferring data"
        )
    if s.connected_count > 0:
        return Status.CONNECTED, (
            f"{s.connected_count} client(s) connected, establishing data flow"
        )
    if s.connecting_count > 0:
        return Status.CONNECTING, (
            f"{s.connecting_count} client(s) connecting - waiting for handshake"
        )
    if s.broker_connected or s.benign_count > 0:
        return Status.READY, "Connected to broker - waiting for clients"
    if s.stats_event_count > 0 or s.announce_count > 0:
        return Status.ANNOUNCING, "Registering with the broker network"
    if s.error_count > error_threshold:
        return Status.ERROR, "Experiencing errors, check logs"
    return Status.STARTING, "Initializing connection to the broker network"
