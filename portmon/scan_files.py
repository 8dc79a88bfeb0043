"""Lookups of the process that owns a port, read from the proc filesystem.

A port is resolved by first finding the inode of the socket bound to it in
``/proc/net/tcp`` or ``/proc/net/udp``, then searching every process's
``fd`` directory for a link to that socket inode.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

TCP_PATH = "/proc/net/tcp"
UDP_PATH = "/proc/net/udp"
PROC_ROOT = "/proc"

# sl  local_address rem_address   st
_SOCKET_LINE = re.compile(
    r"\s*\d+:\s[0-9A-F]{8}:(\w{4})\s[0-9A-F]{8}:\w{4}\s(\w{2})", re.ASCII
)
_DIGITS = re.compile(r"[0-9]+", re.ASCII)
_INODE_FIELD = 9
_SOCKET_PREFIX = "socket:["


def parse_listening_sockets(path: PathLike, filter_port: int = 0) -> List[Tuple[str, int]]:
    """Return ``(inode, port)`` pairs for the sockets listed in a proc net table.

    With a non-zero ``filter_port`` only sockets on that local port are kept.
    Lines whose inode is 0 or malformed are skipped. A missing or unreadable
    file gives an empty list.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as table:
            lines = table.readlines()
    except OSError:
        return []

    result = []
    for line in lines:
        match = _SOCKET_LINE.search(line)
        if not match:
            continue
        port = int(match.group(1), 16) & 0xFFFF
        if filter_port and port != filter_port:
            continue
        fields = line.split()
        if len(fields) <= _INODE_FIELD:
            continue
        inode = fields[_INODE_FIELD]
        if inode != "0" and _DIGITS.fullmatch(inode):
            result.append((inode, port))
    return result


def _process_dirs(proc_root: Path):
    entries = [
        entry for entry in proc_root.iterdir()
        if _DIGITS.fullmatch(entry.name) and entry.is_dir()
    ]
    return sorted(entries, key=lambda entry: int(entry.name))


def find_pid_by_sock_inode(inode: str, proc_root: PathLike = PROC_ROOT) -> Optional[int]:
    """The pid of the process holding a descriptor for the socket inode, or None."""
    for process in _process_dirs(Path(proc_root)):
        fd_dir = process / "fd"
        try:
            descriptors = sorted(fd_dir.iterdir())
        except OSError:
            continue
        for descriptor in descriptors:
            try:
                link = os.readlink(descriptor)
            except OSError:
                continue
            if _SOCKET_PREFIX not in link:
                continue
            if link[len(_SOCKET_PREFIX):-1] == inode:
                return int(process.name)
    return None


def initialize_port_pid_map(
    tcp_path: PathLike = TCP_PATH,
    udp_path: PathLike = UDP_PATH,
    proc_root: PathLike = PROC_ROOT,
) -> Dict[int, int]:
    """Map every bound port to its owning pid; TCP entries take priority over UDP."""
    mapping: Dict[int, int] = {}
    for inode, port in parse_listening_sockets(tcp_path):
        pid = find_pid_by_sock_inode(inode, proc_root)
        if pid is not None:
            mapping[port] = pid
    for inode, port in parse_listening_sockets(udp_path):
        if port in mapping:
            continue
        pid = find_pid_by_sock_inode(inode, proc_root)
        if pid is not None:
            mapping[port] = pid
    return mapping


def scan_for_pid_by_port(
    port: int,
    protocol: str,
    tcp_path: PathLike = TCP_PATH,
    udp_path: PathLike = UDP_PATH,
    proc_root: PathLike = PROC_ROOT,
) -> Optional[int]:
    """The pid owning ``port``; TCP table for protocol 'T', UDP table otherwise."""
    if protocol == "T":
        kind, table = "tcp", tcp_path
    else:
        kind, table = "udp", udp_path
    sockets = parse_listening_sockets(table, port)
    if not sockets:
        return None
    inode, found_port = sockets[0]
    log.info("found %s socket port %u for socket inode %s", kind, found_port, inode)
    return find_pid_by_sock_inode(inode, proc_root)