"""Dashboard rendering: rich panels for the terminal, plain text fallback."""

from __future__ import annotations

from typing import Optional

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from conduit_monitor.analysis.history import (
    INSUFFICIENT_DATA,
    MIN_TREND_ENTRIES,
    NO_ACTIVITY_YET,
    Trend,
)
from conduit_monitor.analysis.reputation import reputation_label
from conduit_monitor.analysis.status import Status
from conduit_monitor.extraction.models import MetricSnapshot
from conduit_monitor.extraction.units import format_bytes
from conduit_monitor.reporting.annotations import LineAnnotator
from conduit_monitor.reporting.models import DashboardView

TITLE = "Conduit Real-Time Monitor"
NO_ACTIVITY_MESSAGE = "Target running, no activity yet"
BAR_WIDTH = 20

STATUS_STYLES = {
    Status.ACTIVE: "green",
    Status.CONNECTED: "cyan",
    Status.CONNECTING: "yellow",
    Status.READY: "blue",
    Status.ANNOUNCING: "blue",
    Status.ERROR: "red",
    Status.STARTING: "blue",
}

LABEL_STYLES = {"Excellent": "green", "Building": "yellow", "Starting": "red"}

# Health thresholds
HIGH_ERROR_COUNT = 20
HIGH_WARNING_COUNT = 50


def score_bar(score: int, width: int = BAR_WIDTH) -> tuple[str, str]:
    """Return (filled, empty) bar segments for a 0-100 score."""
    filled = max(0, min(width, score * width // 100))
    return "█" * filled, "░" * (width - filled)


def error_health(snapshot: MetricSnapshot) -> tuple[str, str]:
    """(note, style) describing the error count."""
    if snapshot.error_count > HIGH_ERROR_COUNT:
        return "High - investigate", "red"
    if snapshot.error_count > 0:
        return "Some errors normal", "yellow"
    return "None", "green"


class DashboardRenderer:
    """Draws a DashboardView onto a rich Console."""

    def __init__(
        self,
        console: Optional[Console] = None,
        annotator: Optional[LineAnnotator] = None,
        clear: bool = True,
    ) -> None:
        self.console = console or Console()
        self._annotator = annotator or LineAnnotator()
        self._clear = clear

    def begin(self) -> None:
        if self.console.is_terminal:
            self.console.show_cursor(False)

    def end(self) -> None:
        if self.console.is_terminal:
            self.console.show_cursor(True)

    def render(self, view: DashboardView) -> None:
        if self._clear and self.console.is_terminal:
            self.console.clear()
        self.console.print(self.build(view))

    def build(self, view: DashboardView) -> Group:
        parts: list[RenderableType] = [self._header(view)]
        if not view.reachable:
            parts.append(Panel(
                Text.assemble(
                    (f"✗ Target not running: {view.target}\n", "bold red"),
                    (view.fetch_error or "Waiting for the target to come back...", "red"),
                ),
                title="Degraded",
                border_style="red",
            ))
        elif view.degraded:
            parts.append(Panel(
                Text.assemble(
                    ("⚠ Could not read logs this cycle, retrying next refresh\n", "bold yellow"),
                    (view.fetch_error, "yellow"),
                ),
                title="Degraded",
                border_style="yellow",
            ))
        else:
            snapshot = view.snapshot
            parts.append(self._status_panel(view, snapshot))
            parts.append(self._metrics_table(snapshot))
            parts.append(self._health_table(snapshot))
            parts.append(self._trend_panel(view.trend))

        if view.recent_lines:
            parts.append(self._tail_panel(view.recent_lines))
        return Group(*parts)

    def _header(self, view: DashboardView) -> Panel:
        text = Text()
        text.append("Target: ", style="blue")
        text.append(view.target)
        text.append("\nRefresh: ", style="blue")
        text.append(f"every {view.interval}s | Press Ctrl+C to exit")
        text.append("\nTime: ", style="blue")
        text.append(view.timestamp.strftime("%Y-%m-%d %H:%M:%S"))
        if view.started_at:
            text.append("\nStarted at: ", style="blue")
            text.append(view.started_at)
        return Panel(text, title=f"[bold]{TITLE}[/bold]", border_style="cyan")

    def _status_panel(self, view: DashboardView, snapshot: MetricSnapshot) -> Panel:
        status = view.status or Status.STARTING
        style = STATUS_STYLES.get(status, "blue")
        label = reputation_label(view.score)
        filled, empty = score_bar(view.score)

        text = Text()
        text.append("Status: ", style="bold")
        text.append(f"● {status.value.upper()}\n", style=f"bold {style}")
        text.append(view.description, style=style)
        if not snapshot.has_activity:
            text.append(f"\n{NO_ACTIVITY_MESSAGE}", style="yellow")
        text.append("\n\nEstimated Reputation: ", style="bold")
        text.append(filled, style=LABEL_STYLES[label])
        text.append(empty)
        text.append(f" {view.score}% ", style="bold")
        text.append(f"({label})", style=LABEL_STYLES[label])
        if snapshot.process_uptime and snapshot.process_uptime != "unknown":
            text.append("\nProcess uptime: ", style="cyan")
            text.append(snapshot.process_uptime, style="bold")
        return Panel(text, title="Node Status", border_style="magenta")

    def _metrics_table(self, snapshot: MetricSnapshot) -> Table:
        table = Table(title="Connection Statistics", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right", style="bold")

        broker = (
            "[green]✓ connected[/green]" if snapshot.broker_connected
            else "[yellow]⚠ connecting[/yellow]"
        )
        table.add_row("Broker network", broker)
        table.add_row("Connecting clients", str(snapshot.connecting_count))
        table.add_row("Connected clients", str(snapshot.connected_count))
        table.add_section()
        table.add_row("Peak connecting", str(snapshot.peak_connecting))
        table.add_row("Peak connected", str(snapshot.peak_connected))
        table.add_section()
        table.add_row(
            "Uploaded",
            f"{format_bytes(snapshot.upload_bytes)} ({snapshot.upload_bytes:,} bytes)",
        )
        table.add_row(
            "Downloaded",
            f"{format_bytes(snapshot.download_bytes)} ({snapshot.download_bytes:,} bytes)",
        )
        table.add_section()
        table.add_row("Stats updates", str(snapshot.stats_event_count))
        table.add_row("Announcements", str(snapshot.announce_count))
        good = f"[green]{snapshot.benign_count} ✓[/green]" if snapshot.benign_count else "0"
        table.add_row("Benign broker replies", good)
        return table

    def _health_table(self, snapshot: MetricSnapshot) -> Table:
        table = Table(title="Health Summary", show_header=False)
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_column("Note")

        if snapshot.fatal_count > 0:
            table.add_row(
                "[bold red]Fatal[/bold red]",
                f"[bold red]{snapshot.fatal_count}[/bold red]",
                "[red]CRITICAL - check logs immediately![/red]",
            )
        else:
            table.add_row("Fatal", "0", "[green]None[/green]")

        note, style = error_health(snapshot)
        table.add_row("Errors", f"[{style}]{snapshot.error_count}[/{style}]", f"[{style}]{note}[/{style}]")

        if snapshot.warning_count > HIGH_WARNING_COUNT:
            table.add_row("Warnings", f"[yellow]{snapshot.warning_count}[/yellow]", "[yellow]High[/yellow]")
        else:
            table.add_row("Warnings", str(snapshot.warning_count), "")
        return table

    def _trend_panel(self, trend: Optional[Trend]) -> Panel:
        text = Text()
        if trend is None or trend.label == INSUFFICIENT_DATA:
            count = trend.entry_count if trend else 0
            text.append(
                f"Insufficient data ({count} of {MIN_TREND_ENTRIES} samples collected)",
                style="dim",
            )
            return Panel(text, title="Trend Analysis", border_style="magenta")

        text.append(f"Trend: {trend.label}\n", style="bold")
        text.append(f"Connected clients: {trend.connected_delta:+d}\n",
                    style="green" if trend.connected_delta > 0 else "")
        text.append(f"Connecting clients: {trend.connecting_delta:+d}\n")
        text.append(f"Downloaded: +{format_bytes(trend.download_delta)}",
                    style="green" if trend.download_delta > 0 else "")
        if trend.label == NO_ACTIVITY_YET:
            text.append("\nWaiting for first connections...", style="yellow")
        return Panel(text, title="Trend Analysis", border_style="magenta")

    def _tail_panel(self, lines: list[str]) -> Panel:
        body = Text()
        for i, line in enumerate(lines):
            if i:
                body.append("\n")
            annotation = self._annotator.annotate(line)
            if annotation is None:
                body.append(line)
                continue
            body.append(f"[{annotation.label}] ", style=annotation.style)
            body.append(line, style=annotation.style if annotation.tint_line else "")
        return Panel(
            body,
            title=f"Recent Events (last {len(lines)} lines)",
            border_style="magenta",
        )


def format_text_report(
    view: DashboardView, annotator: Optional[LineAnnotator] = None
) -> str:
    """Format a view as plain text, used when rich rendering fails."""
    annotator = annotator or LineAnnotator()
    lines = [f"=== {TITLE}: {view.target} ==="]
    lines.append(
        f"Time: {view.timestamp.strftime('%Y-%m-%d %H:%M:%S')}  Refresh: {view.interval}s"
    )
    lines.append("")

    if not view.reachable:
        lines.append(f"DEGRADED: target not running: {view.target}")
        if view.fetch_error:
            lines.append(f"  {view.fetch_error}")
    elif view.degraded:
        lines.append("DEGRADED: could not read logs this cycle, retrying")
        lines.append(f"  {view.fetch_error}")
    else:
        s = view.snapshot
        status = view.status.value if view.status else "Unknown"
        lines.append(f"Status: {status} - {view.description}")
        if not s.has_activity:
            lines.append(NO_ACTIVITY_MESSAGE)
        lines.append(f"Reputation: {view.score}% ({reputation_label(view.score)})")
        lines.append(f"Clients: {s.connecting_count} connecting, {s.connected_count} connected "
                     f"(peak {s.peak_connecting}/{s.peak_connected})")
        lines.append(f"Transfer: up {s.upload_bytes} bytes, down {s.download_bytes} bytes")
        lines.append(f"Health: {s.fatal_count} fatal, {s.error_count} errors, "
                     f"{s.warning_count} warnings")
        if view.trend is not None and view.trend.sufficient:
            t = view.trend
            lines.append(f"Trend: {t.label} (connected {t.connected_delta:+d}, "
                         f"downloaded +{t.download_delta} bytes)")
        else:
            lines.append(f"Trend: {INSUFFICIENT_DATA}")

    if view.recent_lines:
        lines.append("")
        lines.append("--- Recent Events ---")
        for raw in view.recent_lines:
            annotation = annotator.annotate(raw)
            prefix = f"[{annotation.label}] " if annotation else ""
            lines.append(f"{prefix}{raw}")

    return "\n".join(lines)
