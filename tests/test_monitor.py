"""Tests for the monitor loop, carry-forward smoothing and end-to-end cycles."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from conduit_monitor.analysis.status import Status
from conduit_monitor.extraction.models import MetricSnapshot
from conduit_monitor.monitor.loop import MonitorLoop
from conduit_monitor.monitor.smoothing import carry_forward
from conduit_monitor.reporting.dashboard import DashboardRenderer
from conduit_monitor.source.errors import TargetUnreachableError


def _console_renderer():
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None)
    return DashboardRenderer(console=console), buffer


class TestCarryForward:
    """Test one-step memory of current-value fields."""

    def test_no_previous(self):
        current = MetricSnapshot(connected_count=1)
        assert carry_forward(None, current) is current

    def test_missing_fields_are_carried(self):
        previous = MetricSnapshot(
            connected_count=2,
            download_bytes=4096,
            process_uptime="1h",
            observed=frozenset({"connected_count", "download_bytes", "process_uptime"}),
        )
        current = MetricSnapshot(error_count=1)
        merged = carry_forward(previous, current)
        assert merged.connected_count == 2
        assert merged.download_bytes == 4096
        assert merged.process_uptime == "1h"
        assert merged.error_count == 1
        assert "connected_count" in merged.observed

    def test_observed_fields_win(self):
        previous = MetricSnapshot(
            connected_count=2, observed=frozenset({"connected_count"})
        )
        current = MetricSnapshot(connected_count=0, observed=frozenset({"connected_count"}))
        assert carry_forward(previous, current).connected_count == 0

    def test_counters_are_not_carried(self):
        previous = MetricSnapshot(error_count=9, stats_event_count=4, broker_connected=True)
        merged = carry_forward(previous, MetricSnapshot())
        assert merged.error_count == 0
        assert merged.stats_event_count == 0
        assert merged.broker_connected is False


class TestMonitorLoop:
    """Test cycle orchestration and failure handling."""

    def test_startup_check(self, make_source, config):
        loop = MonitorLoop(make_source([[]], reachable=False), config)
        with pytest.raises(TargetUnreachableError):
            loop.check_startup()

    def test_run_once_populates_view(self, make_source, config, sample_lines, ticking_clock):
        source = make_source([[sample_lines["broker_ok"], sample_lines["stats_busy"]]])
        loop = MonitorLoop(source, config, renderer=_console_renderer()[0], clock=ticking_clock)
        view = loop.run_once()
        assert view.reachable
        assert not view.degraded
        assert view.status is Status.ACTIVE
        assert view.score > 0
        assert view.started_at == "2025-01-10T09:59:50"
        assert view.recent_lines == [sample_lines["broker_ok"], sample_lines["stats_busy"]]
        assert len(loop.history) == 1
        assert view.trend.label == "insufficient data"

    def test_tail_is_limited(self, make_source, config, sample_lines):
        config.tail_lines = 2
        lines = [sample_lines["startup"]] * 10 + [sample_lines["announce"]]
        loop = MonitorLoop(make_source([lines]), config)
        view = loop.run_once()
        assert view.recent_lines == [sample_lines["startup"], sample_lines["announce"]]

    def test_unreachable_mid_loop_is_degraded(self, make_source, config):
        source = make_source([["x"]])
        loop = MonitorLoop(source, config)
        source.reachable = False
        view = loop.run_once()
        assert not view.reachable
        assert view.degraded
        assert source.fetches == 0
        assert len(loop.history) == 0

    def test_fetch_error_is_retried(self, make_source, config, sample_lines, fetch_error):
        source = make_source([fetch_error, [sample_lines["stats_busy"]]])
        loop = MonitorLoop(source, config)
        first = loop.run_once()
        assert first.degraded
        assert first.reachable
        assert "timed out" in first.fetch_error
        second = loop.run_once()
        assert not second.degraded
        assert second.snapshot.connected_count == 2
        assert len(loop.history) == 1

    def test_target_vanishes_during_fetch(self, make_source, config):
        source = make_source([TargetUnreachableError("conduit", "No such container")])
        view = MonitorLoop(source, config).run_once()
        assert not view.reachable
        assert "No such container" in view.fetch_error

    def test_smoothing_keeps_last_known_values(self, make_source, config, sample_lines):
        source = make_source([
            [sample_lines["stats_busy"]],
            [sample_lines["announce"], sample_lines["rate_limited"]],
        ])
        loop = MonitorLoop(source, config)
        loop.run_once()
        view = loop.run_once()
        assert view.snapshot.connected_count == 2
        assert view.snapshot.download_bytes == 15728640
        assert view.snapshot.benign_count == 1
        assert view.status is Status.ACTIVE
        assert loop.last_snapshot is view.snapshot

    def test_history_is_capped(self, make_source, config, sample_lines):
        config.history_size = 3
        loop = MonitorLoop(make_source([[sample_lines["stats_idle"]]]), config)
        for _ in range(7):
            loop.run_once()
        assert len(loop.history) == 3

    def test_trend_after_enough_cycles(self, make_source, config):
        batches = [[f"[STATS] Connecting: 0 | Connected: {n} | Down: 0 B"] for n in
                   (0, 0, 1, 1, 2, 2, 3, 4, 4, 5)]
        loop = MonitorLoop(make_source(batches), config)
        for _ in batches:
            view = loop.run_once()
        assert view.trend.label == "increasing"
        assert view.trend.connected_delta == 5

    def test_run_until_stopped(self, make_source, make_renderer, config, sample_lines):
        config.interval = 0
        renderer = make_renderer(stop_after=3)
        loop = MonitorLoop(make_source([[sample_lines["stats_idle"]]]), config, renderer=renderer)
        renderer.loop = loop
        loop.run()
        assert loop.cycles == 3
        assert len(renderer.views) == 3
        assert renderer.began and renderer.ended

    def test_cycle_failure_keeps_loop_running(self, make_source, make_renderer, config,
                                              sample_lines):
        config.interval = 0
        renderer = make_renderer(stop_after=3)
        source = make_source([RuntimeError("decoder crashed"), [sample_lines["stats_busy"]]])
        loop = MonitorLoop(source, config, renderer=renderer)
        renderer.loop = loop
        loop.run()
        assert loop.cycles == 3
        first, second, third = renderer.views
        assert first.degraded and first.reachable
        assert "RuntimeError: decoder crashed" in first.fetch_error
        assert second.status == Status.ACTIVE
        assert third.status == Status.ACTIVE
        assert renderer.ended

    def test_oversized_counter_does_not_stop_loop(self, make_source, make_renderer, config):
        config.interval = 0
        renderer = make_renderer(stop_after=2)
        line = "[STATS] Connected: 1 | Down: " + "9" * 400 + ".5 MB"
        loop = MonitorLoop(make_source([[line]]), config, renderer=renderer)
        renderer.loop = loop
        loop.run()
        assert len(renderer.views) == 2
        assert all(v.status == Status.CONNECTED for v in renderer.views)

    def test_keyboard_interrupt_is_clean(self, make_source, make_renderer, config):
        class InterruptingSource:
            name = "conduit"

            def describe(self):
                return "conduit"

            def is_reachable(self):
                raise KeyboardInterrupt

        renderer = make_renderer()
        loop = MonitorLoop(InterruptingSource(), config, renderer=renderer)
        loop.run()
        assert renderer.ended

    def test_render_failure_falls_back_to_text(self, make_source, make_renderer, config,
                                               sample_lines, capsys):
        loop = MonitorLoop(
            make_source([[sample_lines["stats_busy"]]]), config,
            renderer=make_renderer(fail=True),
        )
        loop.render(loop.run_once())
        out = capsys.readouterr().out
        assert "Status: Active" in out
        assert "[STATS]" in out


class TestEndToEnd:
    """Full cycles from raw batch to rendered dashboard."""

    def test_no_recognizable_markers(self, make_source, config):
        renderer, buffer = _console_renderer()
        batch = ["booting", "loading configuration", "listening on :8080"]
        loop = MonitorLoop(make_source([batch]), config, renderer=renderer)
        view = loop.run_once()
        loop.render(view)
        assert view.status is Status.STARTING
        assert view.score == 0
        assert "Target running, no activity yet" in buffer.getvalue()

    def test_broker_replies_without_connections(self, make_source, config, sample_lines):
        renderer, buffer = _console_renderer()
        batch = [sample_lines["rate_limited"]] * 3 + [sample_lines["no_match"]] * 2
        loop = MonitorLoop(make_source([batch]), config, renderer=renderer)
        view = loop.run_once()
        loop.render(view)
        out = buffer.getvalue()
        assert view.status in (Status.READY, Status.ANNOUNCING)
        assert view.score > 0
        assert view.snapshot.error_count == 0
        assert "[GOOD]" in out
        assert "[ERROR]" not in out

    def test_connected_with_transfer(self, make_source, config):
        renderer, buffer = _console_renderer()
        batch = ["[STATS] Connecting: 0 | Connected: 2 | Up: 1 MB | Down: 15 MB | Uptime: 2h"]
        loop = MonitorLoop(make_source([batch]), config, renderer=renderer)
        view = loop.run_once()
        loop.render(view)
        assert view.status is Status.ACTIVE
        assert view.score >= 80
        assert view.snapshot.download_bytes == 15728640
        assert "15,728,640" in buffer.getvalue()
