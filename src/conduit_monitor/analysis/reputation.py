"""Heuristic reputation score in [0, 100]."""

from __future__ import annotations

from conduit_monitor.extraction.models import MetricSnapshot

CONNECTED_WEIGHT = 20
PEAK_CONNECTED_WEIGHT = 10
CONNECTING_WEIGHT = 0.5
ERROR_PENALTY = 2
# Broker replies and announcements prove the node is heard, capped so
# chatter alone cannot outweigh a single connected client
COMMUNICATION_CAP = 10

# (exclusive lower bound in bytes, points), highest first
TRANSFER_STEPS = (
    (1024 * 1024, 30),
    (10 * 1024, 15),
    (0, 5),
)

MIN_SCORE = 0
MAX_SCORE = 100


def transfer_score(download_bytes: int) -> int:
    for floor, points in TRANSFER_STEPS:
        if download_bytes > floor:
            return points
    return 0


def score(snapshot: MetricSnapshot) -> int:
    """Weighted sum of activity signals minus an error penalty, clamped."""
    total = (
        snapshot.connected_count * CONNECTED_WEIGHT
        + snapshot.peak_connected * PEAK_CONNECTED_WEIGHT
        + int(snapshot.connecting_count * CONNECTING_WEIGHT)
        + transfer_score(snapshot.download_bytes)
        + min(snapshot.benign_count + snapshot.announce_count, COMMUNICATION_CAP)
        - snapshot.error_count * ERROR_PENALTY
    )
    return max(MIN_SCORE, min(MAX_SCORE, total))


def reputation_label(value: int) -> str:
    if value >= 70:
        return "Excellent"
    if value >= 40:
        return "Building"
    return "Starting"
