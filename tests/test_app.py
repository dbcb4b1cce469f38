"""Tests for the pyuptime dashboard application."""

import io

import pytest
from rich.console import Console

from pyuptime.app import UptimeApp, UptimePanel
from pyuptime.models import DisplayConfig, MetricsSnapshot, OutputFormat
from pyuptime.monitor import MetricsCollector
from pyuptime.render import build_dashboard


def test_app_creation(fake_host):
    """Test UptimeApp can be instantiated."""
    app = UptimeApp(MetricsCollector(fake_host))
    assert app.title == "pyuptime"
    assert app.sub_title == "System Uptime"
    assert app.refresh_interval == 1.0
    assert app.snapshot is None


def test_refresh_interval_minimum(fake_host):
    """Test the refresh interval has a minimum value."""
    app = UptimeApp(MetricsCollector(fake_host), refresh_interval=0.01)
    assert app.refresh_interval >= 0.1


def test_app_forces_interactive_format(fake_host):
    """Test the dashboard always renders the interactive panel."""
    app = UptimeApp(MetricsCollector(fake_host), DisplayConfig(format=OutputFormat.RAW, show_container=True))
    assert app._config.format is OutputFormat.INTERACTIVE
    assert app._config.show_container is True


def test_app_defaults_to_color(fake_host):
    """Test the dashboard is colored unless told otherwise."""
    assert UptimeApp(MetricsCollector(fake_host))._config.color is True


def test_app_keeps_color_off(fake_host):
    """Test a colorless config stays colorless in the dashboard."""
    config = DisplayConfig(format=OutputFormat.INTERACTIVE, color=False)
    app = UptimeApp(MetricsCollector(fake_host), config)
    assert app._config.color is False


@pytest.mark.asyncio
async def test_app_collects_on_mount(fake_host):
    """Test a snapshot is collected and shown as soon as the app starts."""
    app = UptimeApp(MetricsCollector(fake_host))
    async with app.run_test() as pilot:
        panel = pilot.app.query_one("#uptime-panel", UptimePanel)

        assert app.snapshot is not None
        assert app.snapshot.uptime_seconds == 12345.67
        assert panel.snapshot == app.snapshot


@pytest.mark.asyncio
async def test_app_refresh_binding(fake_host):
    """Test that 'r' re-collects metrics."""
    app = UptimeApp(MetricsCollector(fake_host), refresh_interval=60.0)
    async with app.run_test() as pilot:
        first = app.snapshot
        fake_host.uptime_text = "12400.00 45700.00"

        await pilot.press("r")

        assert app.snapshot is not first
        assert app.snapshot.uptime_seconds == 12400.0
        assert first.uptime_seconds == 12345.67


@pytest.mark.asyncio
async def test_app_timer_refresh(fake_host):
    """Test the timer keeps collecting."""
    app = UptimeApp(MetricsCollector(fake_host), refresh_interval=0.1)
    async with app.run_test() as pilot:
        await pilot.pause(0.5)
        assert fake_host.uptime_reads >= 2


@pytest.mark.asyncio
async def test_app_survives_total_failure(host_factory):
    """Test the dashboard shows defaults when nothing can be read."""
    host = host_factory(fail={"uptime", "loadavg", "processes"})
    app = UptimeApp(MetricsCollector(host))
    async with app.run_test():
        assert app.snapshot is not None
        assert app.snapshot.user_count == 1
        assert app.snapshot.load_averages == (0.0, 0.0, 0.0)


@pytest.mark.asyncio
async def test_panel_show():
    """Test the panel widget tracks the snapshot it displays."""
    snapshot = MetricsSnapshot.default(1_700_000_000.0)
    app = UptimeApp(MetricsCollector(_StaticHost()), refresh_interval=60.0)
    async with app.run_test() as pilot:
        panel = pilot.app.query_one("#uptime-panel", UptimePanel)
        panel.show_snapshot(snapshot)
        assert panel.snapshot is snapshot


class _StaticHost:
    environ: dict[str, str] = {}

    def read_uptime(self) -> str:
        return "1.0 1.0"

    def read_loadavg(self) -> tuple[float, float, float]:
        return (0.0, 0.0, 0.0)

    def processes(self):
        return []

    def fd_targets(self, pid: int) -> list[str]:
        return []

    def now(self) -> float:
        return 1_700_000_000.0


@pytest.mark.asyncio
async def test_app_without_color_shows_plain_panel(fake_host):
    """Test the mounted panel carries no styles when color is off."""
    config = DisplayConfig(format=OutputFormat.INTERACTIVE, color=False)
    app = UptimeApp(MetricsCollector(fake_host), config, refresh_interval=60.0)
    async with app.run_test():
        buffer = io.StringIO()
        console = Console(
            file=buffer, force_terminal=True, color_system="standard", width=60, highlight=False
        )
        console.print(build_dashboard(app.snapshot, app._config))
        assert "\x1b[" not in buffer.getvalue()
