"""Unix domain socket server that answers port-to-pid requests from clients."""

from __future__ import annotations

import logging
import os
import socket
import struct
from typing import Optional

from .config import SOCKET_FILE_ADDRESS

log = logging.getLogger(__name__)

PORT_STRUCT = struct.Struct("=H")
PID_STRUCT = struct.Struct("=i")
UNKNOWN_PID = -1


class UnixSocketServer:
    """A listening stream socket serving one connected client at a time."""

    def __init__(self, path: str = SOCKET_FILE_ADDRESS, *, autostart: bool = True) -> None:
        self.path = path
        self._server: Optional[socket.socket] = None
        self._client: Optional[socket.socket] = None
        self._shutting_down = False
        if autostart:
            self.start()

    @property
    def listening(self) -> bool:
        """True while the server socket is open."""
        return self._server is not None

    @property
    def client_connected(self) -> bool:
        """True while a client connection is held."""
        return self._client is not None

    def start(self) -> None:
        """Create, bind and listen on the socket file, replacing a stale one.

        Raises OSError when the socket cannot be set up.
        """
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            try:
                os.unlink(self.path)
            except FileNotFoundError:
                pass
            sock.bind(self.path)
            sock.listen(socket.SOMAXCONN)
        except OSError as exc:
            log.error("unix socket setup failed: %s", exc)
            sock.close()
            raise
        self._shutting_down = False
        self._server = sock

    def connect_to_client(self) -> bool:
        """Block until a client connects; False on failure or during shutdown."""
        if self._server is None:
            return False
        try:
            client, _ = self._server.accept()
        except OSError:
            return False
        if self._shutting_down:
            client.close()
            return False
        self._client = client
        log.info("Client connected (fd=%d)", client.fileno())
        return True

    def receive_port(self) -> Optional[int]:
        """Block for a port request; None when the client left or sent garbage."""
        if self._client is None:
            return None
        try:
            data = self._client.recv(PORT_STRUCT.size)
        except OSError as exc:
            log.error("read failed: %s", exc)
            return None
        if not data:
            return None
        if len(data) != PORT_STRUCT.size:
            log.error("Bad message (fd=%d)", self._client.fileno())
            return None
        return PORT_STRUCT.unpack(data)[0]

    def send_pid(self, pid: Optional[int]) -> bool:
        """Send a pid to the client; None is sent as -1. True when fully written."""
        if self._client is None:
            return False
        payload = PID_STRUCT.pack(UNKNOWN_PID if pid is None else pid)
        try:
            sent = self._client.send(payload)
        except OSError:
            return False
        return sent == len(payload)

    def close_client(self) -> None:
        """Drop the current client so another may connect."""
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        client.close()

    def stop_listening_for_new_clients(self) -> None:
        """Mark shutdown and wake a pending accept with a throwaway connection."""
        self._shutting_down = True
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as waker:
            try:
                waker.connect(self.path)
            except OSError:
                pass

    def close_socket(self) -> None:
        """Close client and server sockets and remove the socket file."""
        self.close_client()
        if self._server is not None:
            self._server.close()
            self._server = None
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass

    def __enter__(self) -> "UnixSocketServer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._server is not None:
            self.close_socket()