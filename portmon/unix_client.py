"""Client side of the daemon's unix socket: sends ports, receives pids."""

from __future__ import annotations

import socket
import struct
from typing import Optional

from .config import SOCKET_FILE_ADDRESS

PORT_STRUCT = struct.Struct("=H")
PID_STRUCT = struct.Struct("=i")


class UnixSocketClient:
    """A stream connection to the port monitor daemon."""

    def __init__(self, path: str = SOCKET_FILE_ADDRESS, *, autoconnect: bool = True) -> None:
        self.path = path
        self._sock: Optional[socket.socket] = None
        if autoconnect:
            self.connect()

    @property
    def connected(self) -> bool:
        """True while the connection is open."""
        return self._sock is not None

    def connect(self) -> None:
        """Connect to the daemon; raises ConnectionError on failure."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self.path)
        except OSError as exc:
            sock.close()
            raise ConnectionError(f"cannot connect to {self.path}: {exc}") from exc
        self._sock = sock
        print("Connected successfully to port monitor daemon")

    def send_port(self, port: int) -> bool:
        """Ask the daemon for the pid of ``port``; True when fully sent."""
        if self._sock is None:
            return False
        print(f"Sending PID request from port monitor daemon for port: {port}")
        payload = PORT_STRUCT.pack(port)
        try:
            sent = self._sock.send(payload)
        except OSError:
            return False
        return sent == len(payload)

    def receive_pid(self) -> Optional[int]:
        """Block for the daemon's answer; -1 means unknown, None means failure."""
        if self._sock is None:
            return None
        try:
            data = self._sock.recv(PID_STRUCT.size)
        except OSError:
            return None
        if len(data) != PID_STRUCT.size:
            return None
        return PID_STRUCT.unpack(data)[0]

    def disconnect(self) -> None:
        """Close the connection; later calls do nothing."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def is_server_alive(self) -> bool:
        """Probe the connection with an empty send."""
        if self._sock is None:
            return False
        try:
            self._sock.send(b"", socket.MSG_NOSIGNAL)
        except OSError:
            return False
        return True

    def __enter__(self) -> "UnixSocketClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()