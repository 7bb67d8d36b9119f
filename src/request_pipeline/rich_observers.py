"""Rich-based observers for watching requests during local development.

Provides a per-request console log line and a live dashboard of outcomes
and top validation errors.

Requires the 'rich' package: pip install rich
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from request_pipeline.events import (
    PipelineEvent,
    PipelineEventType,
    PipelineObserver,
)
from request_pipeline.stats import OK, RequestStats

if TYPE_CHECKING:
    from rich.console import Console, Group
    from rich.live import Live
    from rich.panel import Panel

__all__ = ["ConsoleRequestObserver", "RequestDashboardObserver"]


def _status_style(status_code: int) -> str:
    if status_code >= 500:
        return "bold red"
    if status_code >= 400:
        return "yellow"
    return "green"


class ConsoleRequestObserver(PipelineObserver):
    """Print one line per completed request.

    Example:
        responses.add_observer(ConsoleRequestObserver())
        # 201 create_listing  2.41ms  5b0c...

    Requires:
        pip install rich
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the observer.

        Args:
            console: Rich Console instance. If None, creates a new one.
        """
        from rich.console import Console

        self._console = console or Console(stderr=True)

    def on_event(self, event: PipelineEvent) -> None:
        """Print completed requests; other events are ignored."""
        if event.event_type != PipelineEventType.REQUEST_COMPLETED:
            return
        status = int(event.data.get("status_code", 0))
        style = _status_style(status)
        kind = event.data.get("kind")
        suffix = f" [{style}]{kind}[/]" if kind else ""
        self._console.print(
            f"[{style}]{status}[/] [bold]{event.data.get('operation', '-')}[/]"
            f"  {float(event.data.get('elapsed_ms', 0.0)):.2f}ms"
            f"  [dim]{event.data.get('request_id', '-')}[/]{suffix}"
        )


class RequestDashboardObserver(PipelineObserver):
    """Live dashboard showing request outcomes and top validation errors.

    Displays:
    - Summary statistics panel (total, error rate, latency)
    - Table of outcomes by kind
    - Live table of top validation errors with percentages

    Example:
        dashboard = RequestDashboardObserver()
        responses.add_observer(dashboard)

        with dashboard:  # Context manager starts/stops Live display
            serve_forever()

    Requires:
        pip install rich
    """

    def __init__(
        self,
        console: Console | None = None,
        top_errors_count: int = 10,
        refresh_rate: int = 4,
        stats: RequestStats | None = None,
    ) -> None:
        """Initialize the dashboard observer.

        Args:
            console: Rich Console instance. If None, creates a new one.
            top_errors_count: Number of top errors to display.
            refresh_rate: Display refresh rate per second.
            stats: Shared RequestStats to display. If None, creates one.
        """
        from rich.console import Console

        self._console = console or Console()
        self._top_errors_count = top_errors_count
        self._refresh_rate = refresh_rate
        self._live: Live | None = None
        self.stats = stats if stats is not None else RequestStats()

    def __enter__(self) -> RequestDashboardObserver:
        """Start the live display."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Stop the live display."""
        self.stop()

    def start(self) -> None:
        """Start the live display."""
        from rich.live import Live

        self._live = Live(
            self._build_display(),
            console=self._console,
            refresh_per_second=self._refresh_rate,
        )
        self._live.start()

    def stop(self) -> None:
        """Stop the live display."""
        if self._live:
            self._live.stop()
            self._live = None

    def on_event(self, event: PipelineEvent) -> None:
        """Record completed requests and refresh the display."""
        if event.event_type != PipelineEventType.REQUEST_COMPLETED:
            return
        self.stats.record(
            event.data.get("kind"),
            float(event.data.get("elapsed_ms", 0.0)),
            event.data.get("errors"),
        )
        if self._live:
            self._live.update(self._build_display())

    def _build_display(self) -> Group:
        """Build the full dashboard display."""
        from rich.console import Group

        return Group(
            self._build_stats_panel(),
            self._build_kinds_panel(),
            self._build_errors_panel(),
        )

    def _build_stats_panel(self) -> Panel:
        from rich.panel import Panel
        from rich.text import Text

        snapshot = self.stats.snapshot()
        text = Text()
        text.append(f"Requests: {snapshot['total']:,}  ", style="bold")
        text.append(f"Errors: {self.stats.error_rate:.1f}%  ", style="red")
        text.append(f"Avg: {snapshot['average_ms']:.2f}ms  ", style="cyan")
        text.append(f"Max: {snapshot['max_ms']:.2f}ms", style="bold cyan")

        return Panel(text, title="[bold]Requests[/]", border_style="blue")

    def _build_kinds_panel(self) -> Panel:
        from rich.panel import Panel
        from rich.table import Table

        table = Table(show_header=True, header_style="bold magenta", expand=True)
        table.add_column("Outcome", style="cyan")
        table.add_column("Count", justify="right", width=10)

        by_kind = self.stats.snapshot()["by_kind"]
        for kind, count in sorted(by_kind.items(), key=lambda x: x[1], reverse=True):
            style = "green" if kind == OK else "red"
            table.add_row(f"[{style}]{kind}[/]", f"{count:,}")
        if not by_kind:
            table.add_row("-", "-")

        return Panel(table, title="[bold]Outcomes[/]", border_style="blue")

    def _build_errors_panel(self) -> Panel:
        from rich.panel import Panel
        from rich.table import Table

        table = Table(
            title="Top Validation Errors",
            show_header=True,
            header_style="bold magenta",
            expand=True,
        )
        table.add_column("Field", style="cyan", width=20)
        table.add_column("Error", style="yellow")
        table.add_column("Count", justify="right", style="red", width=10)
        table.add_column("%", justify="right", width=8)

        top = self.stats.top_errors(self._top_errors_count)
        for (field, msg), count, pct in top:
            display_msg = msg[:50] + "..." if len(msg) > 50 else msg
            table.add_row(field, display_msg, f"{count:,}", f"{pct:.1f}%")

        if not top:
            table.add_row("-", "No errors yet", "-", "-")

        return Panel(table, border_style="red")
