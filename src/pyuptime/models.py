"""Data models for pyuptime."""

import math
import time
from dataclasses import dataclass
from enum import Enum


class OutputFormat(Enum):
    """Display styles understood by the renderer."""

    STANDARD = "standard"
    PRETTY = "pretty"
    RAW = "raw"
    SINCE = "since"
    INTERACTIVE = "interactive"


class LoadBand(Enum):
    """Severity bands for a load average value."""

    LOW = "green"
    MODERATE = "yellow"
    HIGH = "dark_orange"
    CRITICAL = "bold red"

    @property
    def style(self) -> str:
        """Rich style used to decorate values in this band."""
        return self.value


@dataclass(slots=True, frozen=True)
class MetricsSnapshot:
    """Immutable snapshot of uptime, load and login state."""

    uptime_seconds: float
    idle_time_seconds: float  # Summed over logical CPUs, may exceed uptime
    load_averages: tuple[float, float, float]
    user_count: int
    boot_time: int  # UNIX timestamp
    collected_at: float  # UNIX timestamp of collection

    @classmethod
    def default(cls, now: float | None = None) -> "MetricsSnapshot":
        """Build the all-default snapshot used when nothing could be read."""
        if now is None:
            now = time.time()
        return cls(
            uptime_seconds=0.0,
            idle_time_seconds=0.0,
            load_averages=(0.0, 0.0, 0.0),
            user_count=1,
            boot_time=max(0, math.floor(now)),
            collected_at=now,
        )


@dataclass(slots=True, frozen=True)
class DisplayConfig:
    """Rendering options chosen by the caller."""

    format: OutputFormat = OutputFormat.STANDARD
    show_container: bool = False
    show_since: bool = False
    color: bool = False
