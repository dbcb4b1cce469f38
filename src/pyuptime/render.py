"""Rendering of metrics snapshots into display strings.

Every function here is pure: output depends only on the snapshot and the
display config. The snapshot's ``collected_at`` stands in for "now".
"""

import io
import math
from collections.abc import Callable
from datetime import datetime

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pyuptime.models import DisplayConfig, LoadBand, MetricsSnapshot, OutputFormat

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CLOCK_FORMAT = "%H:%M:%S"

DASHBOARD_WIDTH = 60


def pluralize(count: int, word: str) -> str:
    """Return ``"<count> <word>"`` with an ``s`` unless count is exactly 1."""
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_timestamp(timestamp: float) -> str:
    """Format a UNIX timestamp as local ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)


def format_clock(timestamp: float) -> str:
    """Format a UNIX timestamp as local ``HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp).strftime(CLOCK_FORMAT)


def load_band(value: float) -> LoadBand:
    """Classify a load average into a severity band."""
    if value < 1.0:
        return LoadBand.LOW
    if value < 2.0:
        return LoadBand.MODERATE
    if value < 4.0:
        return LoadBand.HIGH
    return LoadBand.CRITICAL


def _split_uptime(uptime_seconds: float) -> tuple[int, int, int, int]:
    # Whole seconds, saturating at zero like the classic tool
    total = max(int(uptime_seconds), 0)
    days, remainder = divmod(total, SECONDS_PER_DAY)
    hours, remainder = divmod(remainder, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, SECONDS_PER_MINUTE)
    return days, hours, minutes, seconds


def format_standard_uptime(uptime_seconds: float) -> str:
    """
    Format uptime the way ``uptime`` prints it.

    ``"D days"`` or ``"D:HH"`` past one day, ``"H:MM"`` past one hour,
    ``"M min"`` otherwise.
    """
    days, hours, minutes, _ = _split_uptime(uptime_seconds)
    if days > 0:
        if hours > 0:
            return f"{days}:{hours:02d}"
        return pluralize(days, "day")
    if hours > 0:
        return f"{hours}:{minutes:02d}"
    return f"{minutes} min"


def format_pretty_uptime(uptime_seconds: float) -> str:
    """Format uptime as an ``"up H hours, M minutes"`` sentence."""
    hours = int(uptime_seconds / SECONDS_PER_HOUR)
    minutes = int(math.fmod(uptime_seconds, SECONDS_PER_HOUR) / SECONDS_PER_MINUTE)

    if hours >= 1:
        if minutes > 0:
            return f"up {pluralize(hours, 'hour')}, {pluralize(minutes, 'minute')}"
        return f"up {pluralize(hours, 'hour')}"
    if minutes > 0:
        return f"up {pluralize(minutes, 'minute')}"
    return "up less than a minute"


def format_uptime_components(uptime_seconds: float) -> str:
    """Format uptime as ``"1d 2h 3m 4s"``, dropping zero components."""
    days, hours, minutes, seconds = _split_uptime(uptime_seconds)
    parts = [f"{value}{unit}" for value, unit in ((days, "d"), (hours, "h"), (minutes, "m")) if value]
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def render_raw(snapshot: MetricsSnapshot, config: DisplayConfig) -> str:
    """Render ``boot uptime idle load1 load5 load15`` for scripts."""
    load1, load5, load15 = snapshot.load_averages
    return (
        f"{snapshot.boot_time} {snapshot.uptime_seconds:.6f} {int(snapshot.idle_time_seconds)} "
        f"{load1:.2f} {load5:.2f} {load15:.2f}"
    )


def render_pretty(snapshot: MetricsSnapshot, config: DisplayConfig) -> str:
    return format_pretty_uptime(snapshot.uptime_seconds)


def render_since(snapshot: MetricsSnapshot, config: DisplayConfig) -> str:
    return format_timestamp(snapshot.boot_time)


def render_standard(snapshot: MetricsSnapshot, config: DisplayConfig) -> str:
    """Render the classic one-line ``uptime`` output."""
    load1, load5, load15 = snapshot.load_averages
    container_suffix = " (container)" if config.show_container else ""
    line = (
        f" {format_clock(snapshot.collected_at)} up {format_standard_uptime(snapshot.uptime_seconds)}"
        f"{container_suffix}, {pluralize(snapshot.user_count, 'user')}, "
        f"load average: {load1:.2f}, {load5:.2f}, {load15:.2f}"
    )
    if config.show_since:
        line += f", since {format_timestamp(snapshot.boot_time)}"
    return line


def _decorate(config: DisplayConfig, style: str) -> str:
    # "none" is rich's null style: no escape codes even on a color terminal
    return style if config.color else "none"


def build_dashboard(snapshot: MetricsSnapshot, config: DisplayConfig) -> Panel:
    """
    Build the interactive dashboard panel as a rich renderable.

    Styles are only attached when ``config.color`` is set, so the panel stays
    plain even when printed to a color-capable terminal.
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style=_decorate(config, "bold cyan"), justify="right", no_wrap=True)
    table.add_column(no_wrap=True)

    load = Text(", ").join(
        Text(f"{value:.2f}", style=_decorate(config, load_band(value).style))
        for value in snapshot.load_averages
    )
    if config.show_container:
        mode = Text("container", style=_decorate(config, "magenta"))
    else:
        mode = Text("native", style=_decorate(config, "blue"))

    table.add_row("Time", Text(format_clock(snapshot.collected_at)))
    table.add_row("Uptime", Text(format_uptime_components(snapshot.uptime_seconds)))
    table.add_row("Booted", Text(format_timestamp(snapshot.boot_time)))
    table.add_row("Users", Text(str(snapshot.user_count)))
    table.add_row("Load", load)
    table.add_row("Mode", mode)

    return Panel(
        table,
        title="pyuptime",
        title_align="left",
        border_style=_decorate(config, "blue"),
        box=box.ROUNDED,
        expand=False,
    )


def render_interactive(snapshot: MetricsSnapshot, config: DisplayConfig) -> str:
    """Render the dashboard panel to text, with ANSI styling only if ``config.color``."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=DASHBOARD_WIDTH,
        force_terminal=config.color,
        color_system="standard" if config.color else None,
        highlight=False,
        emoji=False,
        legacy_windows=False,
    )
    console.print(build_dashboard(snapshot, config))
    return buffer.getvalue().rstrip("\n")


RENDERERS: dict[OutputFormat, Callable[[MetricsSnapshot, DisplayConfig], str]] = {
    OutputFormat.STANDARD: render_standard,
    OutputFormat.PRETTY: render_pretty,
    OutputFormat.RAW: render_raw,
    OutputFormat.SINCE: render_since,
    OutputFormat.INTERACTIVE: render_interactive,
}


def render(snapshot: MetricsSnapshot, config: DisplayConfig | None = None) -> str:
    """Render ``snapshot`` in the format selected by ``config``."""
    if config is None:
        config = DisplayConfig()
    return RENDERERS[config.format](snapshot, config)
