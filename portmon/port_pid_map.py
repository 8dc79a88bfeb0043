"""Thread-safe map from local ports to the pid of the process bound to them."""

from __future__ import annotations

import logging
from typing import Optional

from .scan_files import (
    PROC_ROOT,
    TCP_PATH,
    UDP_PATH,
    PathLike,
    initialize_port_pid_map,
    scan_for_pid_by_port,
)
from .thread_safe_map import ThreadSafeMap

log = logging.getLogger(__name__)


class PortToPidMap:
    """Port-to-pid mapping, filled from the system tables when created."""

    def __init__(
        self,
        tcp_path: PathLike = TCP_PATH,
        udp_path: PathLike = UDP_PATH,
        proc_root: PathLike = PROC_ROOT,
    ) -> None:
        self._tcp_path = tcp_path
        self._udp_path = udp_path
        self._proc_root = proc_root
        self._map: ThreadSafeMap[int, int] = ThreadSafeMap()

        initial = initialize_port_pid_map(tcp_path, udp_path, proc_root)
        log.info("Port Pid Mapping When Daemon Started:")
        for port, pid in initial.items():
            self._map.insert_or_assign(port, pid)
            log.info("port %u pid %d", port, pid)

    def add_pid_mapping(self, port: int, protocol: str) -> bool:
        """Look up the owner of ``port`` and record it; False when none is found."""
        pid = scan_for_pid_by_port(
            port, protocol, self._tcp_path, self._udp_path, self._proc_root
        )
        if pid is None:
            log.error("Failed to find PID for port %u packet type: %s", port, protocol)
            return False
        self._map.insert_or_assign(port, pid)
        return True

    def get_pid(self, port: int) -> Optional[int]:
        """The pid recorded for ``port``, or None."""
        return self._map.get(port)

    def __contains__(self, port: object) -> bool:
        return port in self._map

    def __len__(self) -> int:
        return len(self._map)