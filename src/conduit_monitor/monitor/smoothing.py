"""One-step carry-forward of current-value fields between cycles."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from conduit_monitor.extraction.models import MetricSnapshot

# Fields whose last known value survives a batch that does not mention them
CARRY_FORWARD_FIELDS = (
    "connecting_count",
    "connected_count",
    "upload_bytes",
    "download_bytes",
    "process_uptime",
)


def carry_forward(
    previous: Optional[MetricSnapshot], current: MetricSnapshot
) -> MetricSnapshot:
    """Fill fields absent from ``current`` with the values in ``previous``.

    Only fields the previous snapshot actually observed (directly or by an
    earlier carry) are copied, so defaults never overwrite defaults.
    """
    if previous is None:
        return current
    carried = {
        name: getattr(previous, name)
        for name in CARRY_FORWARD_FIELDS
        if name not in current.observed and name in previous.observed
    }
    if not carried:
        return current
    return replace(current, observed=current.observed | frozenset(carried), **carried)
