"""Shared fixtures for pyuptime tests."""

from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from pyuptime.models import MetricsSnapshot
from pyuptime.monitor import ProcessEntry


@dataclass
class FakeHost:
    """In-memory Host used to drive the collector deterministically."""

    uptime_text: str = "12345.67 45678.90\n"
    loadavg: tuple[float, float, float] = (0.5, 0.75, 1.0)
    process_list: list[ProcessEntry] = field(default_factory=list)
    fds: dict[int, list[str]] = field(default_factory=dict)
    environ: dict[str, str] = field(default_factory=dict)
    clock: float = 1_700_000_000.5
    fail: set[str] = field(default_factory=set)  # "uptime", "loadavg", "processes"
    uptime_reads: int = 0

    def read_uptime(self) -> str:
        self.uptime_reads += 1
        if "uptime" in self.fail:
            raise FileNotFoundError("/proc/uptime")
        return self.uptime_text

    def read_loadavg(self) -> tuple[float, float, float]:
        if "loadavg" in self.fail:
            raise OSError("load average unavailable")
        return self.loadavg

    def processes(self) -> Iterator[ProcessEntry]:
        if "processes" in self.fail:
            raise PermissionError("/proc")
        return iter(list(self.process_list))

    def fd_targets(self, pid: int) -> list[str]:
        return list(self.fds.get(pid, []))

    def now(self) -> float:
        return self.clock


@pytest.fixture
def host_factory():
    """Factory building FakeHost instances with overridden fields."""
    return FakeHost


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def snapshot() -> MetricsSnapshot:
    """A snapshot of a machine up for 1 day, 1 hour, 1 minute and 1 second."""
    return MetricsSnapshot(
        uptime_seconds=90061.25,
        idle_time_seconds=350000.75,
        load_averages=(0.5, 1.25, 4.0),
        user_count=2,
        boot_time=1_699_909_939,
        collected_at=1_700_000_000.5,
    )
