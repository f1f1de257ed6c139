"""Per-client DRM engine utilization from procfs fdinfo.

The kernel publishes cumulative busy time for every open DRM file
description in ``/proc/<pid>/fdinfo/<fd>``::

    drm-client-id:      42
    drm-engine-render:  1234567 ns
    drm-engine-video:   0 ns

Sampling those counters on each tick and dividing the busy delta by the wall
clock delta gives the fraction of time each engine spent on that client.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import psutil

LOGGER = logging.getLogger(__name__)

DEFAULT_PROCFS_ROOT = "/proc"

CLIENT_ID_KEY = "drm-client-id"
ENGINE_KEYS = {
    "render": "drm-engine-render",
    "video": "drm-engine-video",
}


def parse_fdinfo(text: str) -> Dict[str, str]:
    """Parse ``key: value`` fdinfo lines, keeping the first value token."""
    entries = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        tokens = value.split()
        if tokens:
            entries[key.strip()] = tokens[0]
    return entries


class EngineStats:
    """Busy fraction of one engine, derived from consecutive samples."""

    def __init__(self):
        self.utilization: Optional[float] = None
        self._last_busy_ns: Optional[int] = None
        self._last_sampled_ns: Optional[int] = None

    def update(self, busy_ns: int, sampled_ns: int) -> None:
        if self._last_busy_ns is not None and sampled_ns > self._last_sampled_ns:
            delta_busy = busy_ns - self._last_busy_ns
            delta_wall = sampled_ns - self._last_sampled_ns
            self.utilization = max(0.0, delta_busy / delta_wall)
        self._last_busy_ns = busy_ns
        self._last_sampled_ns = sampled_ns


class DrmClient:
    """One DRM client (open file description) and its engine statistics."""

    def __init__(self, client_id: int, fdinfo_path: Path, last_seen: int):
        self.client_id = client_id
        self.fdinfo_path = fdinfo_path
        self.last_seen = last_seen
        self.engines = {name: EngineStats() for name in ENGINE_KEYS}

    def update_engines(self, clock: Callable[[], int]) -> None:
        try:
            text = self.fdinfo_path.read_text(encoding="utf-8")
        except OSError as e:
            LOGGER.debug("Client %d went away: %s", self.client_id, e)
            return
        sampled_ns = clock()

        entries = parse_fdinfo(text)
        for name, key in ENGINE_KEYS.items():
            value = entries.get(key)
            if value is not None and value.isdigit():
                self.engines[name].update(int(value), sampled_ns)


class ClientManager:
    """Track DRM clients of a set of device nodes across ticks.

    Args:
        devnames: Device node names to watch, e.g. ``("card0", "renderD128")``
        procfs_root: Mount point of procfs
        clock: Monotonic nanosecond clock
    """

    def __init__(
        self,
        devnames: Iterable[str],
        procfs_root: str = DEFAULT_PROCFS_ROOT,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        self.devnames = frozenset(devnames)
        self.procfs_root = Path(procfs_root)
        self.clock = clock
        self.clients: List[DrmClient] = []
        self.current_tick = 0

    def list_pids(self) -> List[int]:
        return psutil.pids()

    def update(self) -> None:
        """Rescan processes, drop vanished clients and sample engine counters."""
        self.current_tick += 1

        for pid in self.list_pids():
            self._scan_process_fds(pid)

        self.clients = [c for c in self.clients if c.last_seen == self.current_tick]

        for client in self.clients:
            client.update_engines(self.clock)

    def _scan_process_fds(self, pid: int) -> None:
        fd_dir = self.procfs_root / str(pid) / "fd"
        try:
            fds = os.listdir(fd_dir)
        except OSError:
            # Exited, or owned by another user.
            return

        for fd in fds:
            try:
                target = os.readlink(fd_dir / fd)
            except OSError:
                continue
            if os.path.basename(target) not in self.devnames:
                continue

            fdinfo_path = self.procfs_root / str(pid) / "fdinfo" / fd
            try:
                entries = parse_fdinfo(fdinfo_path.read_text(encoding="utf-8"))
            except OSError:
                continue

            client_id = entries.get(CLIENT_ID_KEY)
            if client_id is not None and client_id.isdigit():
                self._mark_or_insert(int(client_id), fdinfo_path)

    def _mark_or_insert(self, client_id: int, fdinfo_path: Path) -> None:
        for client in self.clients:
            if client.client_id == client_id:
                client.last_seen = self.current_tick
                # Owning pid can change after fork.
                client.fdinfo_path = fdinfo_path
                return
        LOGGER.debug("New DRM client %d at %s", client_id, fdinfo_path)
        self.clients.append(DrmClient(client_id, fdinfo_path, self.current_tick))

    def utilization(self, engine: str) -> float:
        """Sum of per-client busy fractions for ``engine``; 0 before two samples."""
        return sum(c.engines[engine].utilization or 0.0 for c in self.clients)


__all__ = ["ClientManager", "DrmClient", "EngineStats", "ENGINE_KEYS", "parse_fdinfo"]
