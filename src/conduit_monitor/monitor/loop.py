"""Monitor loop: fetch -> extract -> classify -> score -> history -> render."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from conduit_monitor.analysis.history import HistoryTracker
from conduit_monitor.analysis.reputation import score
from conduit_monitor.analysis.status import classify
from conduit_monitor.config.settings import MonitorConfig
from conduit_monitor.extraction.extractor import MetricExtractor
from conduit_monitor.extraction.models import MetricSnapshot
from conduit_monitor.monitor.smoothing import carry_forward
from conduit_monitor.reporting.annotations import LineAnnotator
from conduit_monitor.reporting.dashboard import DashboardRenderer, format_text_report
from conduit_monitor.reporting.models import DashboardView
from conduit_monitor.source.errors import LogFetchError, TargetUnreachableError
from conduit_monitor.source.log_source import LogSource

logger = logging.getLogger(__name__)


class MonitorLoop:
    """Drives refresh cycles on a fixed interval until stopped.

    Owns the history buffer and the last snapshot; everything runs on the
    calling thread. ``stop`` may be called from a signal handler.
    """

    def __init__(
        self,
        source: LogSource,
        config: MonitorConfig,
        renderer: Optional[DashboardRenderer] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._config = config
        self._extractor = MetricExtractor(
            benign_markers=config.benign_markers,
            broker_marker=config.broker_marker,
        )
        self._annotator = LineAnnotator(
            benign_markers=config.benign_markers,
            broker_marker=config.broker_marker,
        )
        self._renderer = renderer or DashboardRenderer(annotator=self._annotator)
        self._clock = clock
        self.history = HistoryTracker(capacity=config.history_size)
        self._last_snapshot: Optional[MetricSnapshot] = None
        self._stop = threading.Event()
        self.cycles = 0

    @property
    def last_snapshot(self) -> Optional[MetricSnapshot]:
        return self._last_snapshot

    def check_startup(self) -> None:
        """Raise TargetUnreachableError if the target cannot be monitored."""
        if not self._source.is_reachable():
            raise TargetUnreachableError(self._source.describe())

    def run_once(self) -> DashboardView:
        """Run one cycle and return what should be shown. Never raises for
        fetch problems; those come back as a degraded view."""
        now = self._clock()
        view = DashboardView(
            target=self._source.describe(),
            timestamp=now,
            interval=self._config.interval,
        )

        try:
            if not self._source.is_reachable():
                logger.warning("Target not reachable: %s", view.target)
                view.reachable = False
                return view
            lines = self._source.fetch(self._config.batch_lines)
        except TargetUnreachableError as e:
            logger.warning("Target disappeared during fetch: %s", e)
            view.reachable = False
            view.fetch_error = str(e)
            return view
        except LogFetchError as e:
            logger.warning("Log fetch failed: %s", e)
            view.fetch_error = str(e)
            return view

        snapshot = carry_forward(self._last_snapshot, self._extractor.extract(lines))
        self._last_snapshot = snapshot
        self.history.append(now, snapshot)

        status, description = classify(snapshot)
        view.snapshot = snapshot
        view.status = status
        view.description = description
        view.score = score(snapshot)
        view.trend = self.history.trend()
        view.started_at = self._source.started_at()
        if self._config.tail_lines > 0:
            view.recent_lines = lines[-self._config.tail_lines:]

        logger.debug(
            "Cycle at %s: status=%s score=%d history=%d",
            now.isoformat(timespec="seconds"), status.value, view.score, len(self.history),
        )
        return view

    def _failed_view(self, error: Exception) -> DashboardView:
        return DashboardView(
            target=self._source.describe(),
            timestamp=self._clock(),
            interval=self._config.interval,
            fetch_error=f"Refresh failed: {type(error).__name__}: {error}",
        )

    def render(self, view: DashboardView) -> None:
        try:
            self._renderer.render(view)
        except Exception as e:
            logger.error("Dashboard rendering failed, falling back to text: %s", e)
            print(format_text_report(view, self._annotator), flush=True)

    def run(self) -> None:
        """Loop until ``stop`` is called or the operator interrupts."""
        logger.info(
            "Monitoring %s every %ds (%d lines per fetch)",
            self._source.describe(),
            self._config.interval,
            self._config.batch_lines,
        )
        self._renderer.begin()
        try:
            while not self._stop.is_set():
                try:
                    view = self.run_once()
                except Exception as e:
                    logger.error("Refresh cycle failed: %s", e)
                    view = self._failed_view(e)
                self.render(view)
                self.cycles += 1
                self._stop.wait(self._config.interval)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping monitor")
        finally:
            self._renderer.end()

    def stop(self) -> None:
        self._stop.set()
