"""pyuptime - interactive Textual dashboard."""

import logging

from textual.app import App, ComposeResult
from textual.widgets import Footer, Static

from pyuptime.models import DisplayConfig, MetricsSnapshot, OutputFormat
from pyuptime.monitor import CollectionError, MetricsCollector
from pyuptime.render import build_dashboard

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL = 0.1


class UptimePanel(Static):
    """Widget showing the dashboard panel for the latest snapshot."""

    DEFAULT_CSS = """
    UptimePanel {
        height: auto;
        padding: 1;
    }
    """

    def __init__(self, config: DisplayConfig, **kwargs) -> None:
        """Initialize UptimePanel."""
        super().__init__("Loading uptime...", **kwargs)
        self._config = config
        self._snapshot: MetricsSnapshot | None = None

    @property
    def snapshot(self) -> MetricsSnapshot | None:
        """The snapshot currently on display."""
        return self._snapshot

    def show_snapshot(self, snapshot: MetricsSnapshot) -> None:
        """Replace the displayed snapshot."""
        self._snapshot = snapshot
        self.update(build_dashboard(snapshot, self._config))


class UptimeApp(App):
    """Dashboard that re-collects and redraws uptime metrics on a timer."""

    TITLE = "pyuptime"
    SUB_TITLE = "System Uptime"

    CSS = """
    Screen {
        align: center middle;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        collector: MetricsCollector | None = None,
        config: DisplayConfig | None = None,
        refresh_interval: float = 1.0,
    ) -> None:
        """
        Initialize the UptimeApp.

        Args:
            collector: Source of snapshots. Defaults to the live host.
            config: Display options; the format is forced to interactive.
                Defaults to a colored dashboard.
            refresh_interval: Seconds between redraws. Minimum 0.1s.
        """
        super().__init__()
        self._collector = collector if collector is not None else MetricsCollector()
        base = config if config is not None else DisplayConfig(color=True)
        self._config = DisplayConfig(
            format=OutputFormat.INTERACTIVE,
            show_container=base.show_container,
            show_since=base.show_since,
            color=base.color,
        )
        self._refresh_interval = max(MIN_REFRESH_INTERVAL, refresh_interval)
        self._snapshot: MetricsSnapshot | None = None

    @property
    def refresh_interval(self) -> float:
        """Seconds between automatic refreshes."""
        return self._refresh_interval

    @property
    def snapshot(self) -> MetricsSnapshot | None:
        """Most recently collected snapshot."""
        return self._snapshot

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield UptimePanel(self._config, id="uptime-panel")
        yield Footer()

    def on_mount(self) -> None:
        """Collect immediately, then on every refresh interval."""
        self._update_metrics()
        self.set_interval(self._refresh_interval, self._update_metrics)

    def _update_metrics(self) -> None:
        """Re-collect metrics and redraw the panel."""
        try:
            snapshot = self._collector.refresh(self._snapshot)
        except CollectionError as exc:
            logger.warning("Using default metrics: %s", exc)
            snapshot = MetricsSnapshot.default()
        self._snapshot = snapshot
        self.query_one("#uptime-panel", UptimePanel).show_snapshot(snapshot)

    def action_refresh(self) -> None:
        """Handle refresh action - collect now instead of waiting for the timer."""
        self._update_metrics()
        self.notify("Refreshed")

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()
