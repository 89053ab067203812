"""Shared test fixtures and sample relay log lines."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conduit_monitor.config.settings import MonitorConfig
from conduit_monitor.source.errors import LogFetchError
from conduit_monitor.source.log_source import LogSource


# Real-shaped relay log lines for unit testing
SAMPLE_LINES = {
    "stats_idle": "2025/01/10 10:00:00 [STATS] Connecting: 0 | Connected: 0 | Up: 0 B | Down: 0 B | Uptime: 5m0s",
    "stats_busy": "2025/01/10 10:05:00 [STATS] Connecting: 3 | Connected: 2 | Up: 1.5 MB | Down: 15 MB | Uptime: 1h2m3s",
    "stats_peak": "2025/01/10 10:02:00 [STATS] Connecting: 7 | Connected: 4 | Up: 512 KB | Down: 2 MB | Uptime: 1h0m0s",
    "broker_ok": "2025/01/10 09:59:58 [OK] Connected to Psiphon network",
    "rate_limited": "2025/01/10 10:00:01 broker error: request rate limited",
    "no_match": "2025/01/10 10:00:02 broker: no match for this proxy",
    "announce": "2025/01/10 09:59:59 announcing proxy to broker",
    "error": "2025/01/10 10:00:03 ERROR: webrtc handshake failed",
    "warning": "2025/01/10 10:00:04 [WARN] slow upstream response",
    "fatal": "2025/01/10 10:00:05 panic: runtime error: index out of range",
    "relay": "2025/01/10 10:00:06 relaying traffic for client 1",
    "startup": "2025/01/10 09:59:50 Starting Conduit v1.4.0",
    "blank": "",
}

FIXED_NOW = datetime(2025, 1, 10, 10, 0, 0)


class FakeLogSource(LogSource):
    """In-memory log source returning scripted batches.

    Each batch item is a list of lines or an exception instance to raise.
    The last batch repeats once the script is exhausted.
    """

    def __init__(self, batches, reachable=True, name="conduit"):
        self.name = name
        self._batches = list(batches)
        self.reachable = reachable
        self.fetches = 0

    def is_reachable(self) -> bool:
        return self.reachable

    def fetch(self, line_count: int) -> list[str]:
        index = min(self.fetches, len(self._batches) - 1)
        self.fetches += 1
        item = self._batches[index] if self._batches else []
        if isinstance(item, Exception):
            raise item
        return list(item)[-line_count:]

    def started_at(self):
        return "2025-01-10T09:59:50"


class RecordingRenderer:
    """Renderer stand-in that records views and can stop a loop."""

    def __init__(self, stop_after=None, loop=None, fail=False):
        self.views = []
        self.began = False
        self.ended = False
        self.stop_after = stop_after
        self.loop = loop
        self.fail = fail

    def begin(self):
        self.began = True

    def end(self):
        self.ended = True

    def render(self, view):
        self.views.append(view)
        if self.stop_after and len(self.views) >= self.stop_after and self.loop:
            self.loop.stop()
        if self.fail:
            raise RuntimeError("terminal went away")


@pytest.fixture
def sample_lines():
    return dict(SAMPLE_LINES)


@pytest.fixture
def config():
    return MonitorConfig(interval=1, batch_lines=2000, tail_lines=5, history_size=50)


@pytest.fixture
def ticking_clock():
    """Clock that advances five seconds per call."""
    state = {"now": FIXED_NOW}

    def clock():
        current = state["now"]
        state["now"] = current + timedelta(seconds=5)
        return current

    return clock


@pytest.fixture
def fetch_error():
    return LogFetchError("docker logs timed out after 5s")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CONDUIT_MONITOR_* settings from the host out of tests."""
    for key in (
        "TARGET", "LOG_FILE", "INTERVAL", "LINES", "TAIL_LINES",
        "FETCH_TIMEOUT", "HISTORY_SIZE", "BENIGN_MARKERS", "BROKER_MARKER",
    ):
        monkeypatch.delenv(f"CONDUIT_MONITOR_{key}", raising=False)


@pytest.fixture
def make_source():
    return FakeLogSource


@pytest.fixture
def make_renderer():
    return RecordingRenderer
