"""Data handed from the monitor loop to the renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from conduit_monitor.analysis.history import Trend
from conduit_monitor.analysis.status import Status
from conduit_monitor.extraction.models import MetricSnapshot


@dataclass
class DashboardView:
    """Everything one refresh cycle shows.

    ``snapshot`` is None when the target could not be read this cycle;
    ``fetch_error`` then explains why.
    """

    target: str
    timestamp: datetime
    interval: int
    reachable: bool = True
    snapshot: Optional[MetricSnapshot] = None
    status: Optional[Status] = None
    description: str = ""
    score: int = 0
    trend: Optional[Trend] = None
    recent_lines: list[str] = field(default_factory=list)
    started_at: Optional[str] = None
    fetch_error: str = ""

    @property
    def degraded(self) -> bool:
        return self.snapshot is None
