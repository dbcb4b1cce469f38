"""System metrics collection engine for pyuptime."""

import logging
import math
import os
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import psutil

from pyuptime.models import MetricsSnapshot

logger = logging.getLogger(__name__)

ROOT_UID = 0
FIRST_REGULAR_UID = 1000  # uids 1-999 belong to system and service accounts
TERMINAL_PREFIXES = ("/dev/pts/", "/dev/tty")
DISPLAY_VARIABLES = ("DISPLAY", "WAYLAND_DISPLAY")


class CollectionError(Exception):
    """Raised when none of the OS data sources could be read."""


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """Login-relevant view of a running process."""

    pid: int
    uid: int  # Real uid
    tty_nr: int  # Controlling terminal device number, 0 when detached


class Host(Protocol):
    """Narrow interface over the operating system state pyuptime reads."""

    environ: Mapping[str, str]

    def read_uptime(self) -> str: ...

    def read_loadavg(self) -> tuple[float, float, float]: ...

    def processes(self) -> Iterable[ProcessEntry]: ...

    def fd_targets(self, pid: int) -> list[str]: ...

    def now(self) -> float: ...


class ProcfsHost:
    """
    Host backed by psutil and the Linux /proc filesystem.

    Direct reads (uptime, stat records, descriptor tables) follow
    ``psutil.PROCFS_PATH``. Load averages come from ``psutil.getloadavg()``,
    which asks the kernel through ``os.getloadavg()`` and ignores that root.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ

    @property
    def procfs(self) -> Path:
        """Root of the proc filesystem."""
        return Path(psutil.PROCFS_PATH)

    def read_uptime(self) -> str:
        return (self.procfs / "uptime").read_text()

    def read_loadavg(self) -> tuple[float, float, float]:
        return psutil.getloadavg()

    def processes(self) -> Iterator[ProcessEntry]:
        """
        Yield every running process with its real uid and terminal number.

        Processes that exit mid-scan or hide their status are skipped.
        """
        for proc in psutil.process_iter(attrs=["uids"]):
            uids = proc.info.get("uids")
            if uids is None:
                continue
            try:
                tty_nr = self._read_tty_nr(proc.pid)
            except (OSError, ValueError, IndexError):
                continue
            yield ProcessEntry(pid=proc.pid, uid=uids.real, tty_nr=tty_nr)

    def fd_targets(self, pid: int) -> list[str]:
        """Resolve the symlink targets of a process's open descriptors."""
        targets: list[str] = []
        try:
            entries = list((self.procfs / str(pid) / "fd").iterdir())
        except OSError:
            return targets

        for entry in entries:
            try:
                targets.append(os.readlink(entry))
            except OSError:
                continue  # Closed between listing and readlink
        return targets

    def now(self) -> float:
        return time.time()

    def _read_tty_nr(self, pid: int) -> int:
        stat = (self.procfs / str(pid) / "stat").read_text()
        # comm may contain spaces and parentheses, so split after the last ")"
        fields = stat[stat.rindex(")") + 2 :].split()
        return int(fields[4])


def is_human_uid(uid: int) -> bool:
    """Return True for root and regular (non-service) accounts."""
    return uid == ROOT_UID or uid >= FIRST_REGULAR_UID


def terminal_owners(host: Host) -> set[int]:
    """Users owning at least one process attached to a controlling terminal."""
    return {
        proc.uid
        for proc in host.processes()
        if proc.tty_nr != 0 and is_human_uid(proc.uid)
    }


def tty_fd_owners(host: Host) -> set[int]:
    """Users owning at least one process holding a terminal device open."""
    owners: set[int] = set()
    for proc in host.processes():
        if proc.uid in owners or not is_human_uid(proc.uid):
            continue
        if any(target.startswith(TERMINAL_PREFIXES) for target in host.fd_targets(proc.pid)):
            owners.add(proc.uid)
    return owners


def environment_users(host: Host) -> set[int]:
    """Best-effort guess from the invoking environment."""
    users: set[int] = set()
    if any(name in host.environ for name in DISPLAY_VARIABLES):
        users.add(FIRST_REGULAR_UID)

    raw_uid = host.environ.get("UID")
    if raw_uid is not None:
        try:
            uid = int(raw_uid)
        except ValueError:
            logger.debug("Ignoring unparseable UID variable %r", raw_uid)
        else:
            if uid >= 0:
                users.add(uid)
    return users


UserTier = Callable[[Host], set[int]]

USER_TIERS: tuple[UserTier, ...] = (terminal_owners, tty_fd_owners, environment_users)


def count_users(
    host: Host,
    tiers: Sequence[UserTier] = USER_TIERS,
    failed: list[str] | None = None,
) -> int:
    """
    Count distinct logged-in users.

    Tiers are tried in order and the first non-empty set wins. A tier that
    raises counts as empty and its name is appended to ``failed``. The
    result never drops below 1.
    """
    for tier in tiers:
        try:
            users = tier(host)
        except (OSError, psutil.Error) as exc:
            logger.debug("User detection via %s failed: %s", tier.__name__, exc)
            if failed is not None:
                failed.append(tier.__name__)
            continue
        if users:
            logger.debug("User detection via %s found uids %s", tier.__name__, sorted(users))
            return len(users)
    return 1


def parse_uptime(text: str) -> tuple[float, float]:
    """Parse ``"<uptime> <idle>"`` as exposed by /proc/uptime."""
    parts = text.split()
    if len(parts) < 2:
        raise ValueError(f"expected two fields in uptime source, got {text!r}")
    return float(parts[0]), float(parts[1])


def compute_boot_time(now: float, uptime_seconds: float) -> int:
    """Boot timestamp in whole seconds, never negative and never after ``now``."""
    return max(0, math.floor(now) - math.floor(max(uptime_seconds, 0.0)))


class MetricsCollector:
    """
    Collects uptime, idle time, load averages and user counts.

    Every source is read independently. A source that cannot be read or
    parsed degrades to its default value instead of aborting collection.
    """

    def __init__(
        self,
        host: Host | None = None,
        tiers: Sequence[UserTier] = USER_TIERS,
    ) -> None:
        """
        Initialize the MetricsCollector.

        Args:
            host: OS access layer. Defaults to the live procfs host.
            tiers: User detection chain, tried in order.
        """
        self._host = host if host is not None else ProcfsHost()
        self._tiers = tuple(tiers)

    @property
    def host(self) -> Host:
        """The OS access layer in use."""
        return self._host

    def collect(self) -> MetricsSnapshot:
        """
        Collect a fresh snapshot of the current system state.

        Raises:
            CollectionError: If every OS source failed.
        """
        failed: list[str] = []

        uptime_seconds, idle_time = self._read_uptime(failed)
        now = self._host.now()
        load_averages = self._read_loadavg(failed)
        user_count = count_users(self._host, self._tiers, failed)

        if "uptime" in failed and "loadavg" in failed and len(failed) > 2:
            raise CollectionError(f"no OS source could be read (failed: {', '.join(failed)})")

        return MetricsSnapshot(
            uptime_seconds=uptime_seconds,
            idle_time_seconds=idle_time,
            load_averages=load_averages,
            user_count=user_count,
            boot_time=compute_boot_time(now, uptime_seconds),
            collected_at=now,
        )

    def refresh(self, snapshot: MetricsSnapshot | None = None) -> MetricsSnapshot:
        """Discard ``snapshot`` and collect a new one reflecting this instant."""
        return self.collect()

    def collect_or_default(self) -> MetricsSnapshot:
        """Collect, falling back to the all-default snapshot on total failure."""
        try:
            return self.collect()
        except CollectionError as exc:
            logger.warning("Using default metrics: %s", exc)
            return MetricsSnapshot.default(self._host.now())

    def _read_uptime(self, failed: list[str]) -> tuple[float, float]:
        try:
            return parse_uptime(self._host.read_uptime())
        except (OSError, ValueError) as exc:
            logger.debug("Uptime source unavailable: %s", exc)
            failed.append("uptime")
            return 0.0, 0.0

    def _read_loadavg(self, failed: list[str]) -> tuple[float, float, float]:
        try:
            load1, load5, load15 = self._host.read_loadavg()
            return float(load1), float(load5), float(load15)
        except (OSError, ValueError, TypeError) as exc:
            logger.debug("Load average source unavailable: %s", exc)
            failed.append("loadavg")
            return 0.0, 0.0, 0.0
