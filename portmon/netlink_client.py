"""Netlink client that subscribes to the kernel sniffer and reads packet records."""

from __future__ import annotations

import logging
import os
import socket
import struct
from typing import Optional

from .config import MAX_PAYLOAD, NETLINK_USER, PACKET_INFO_SIZE, PacketInfo

log = logging.getLogger(__name__)

# struct nlmsghdr: length, type, flags, sequence, sender port id
_NLMSG_HEADER = struct.Struct("=IHHII")
NLMSG_HDRLEN = _NLMSG_HEADER.size


def _nlmsg_align(length: int) -> int:
    return (length + 3) & ~3


MESSAGE_SIZE = _nlmsg_align(NLMSG_HDRLEN + MAX_PAYLOAD)


def build_message(msg: str, pid: int) -> bytes:
    """Frame a text command as a netlink message from the given process."""
    payload = msg.encode()[: MAX_PAYLOAD - 1]
    header = _NLMSG_HEADER.pack(MESSAGE_SIZE, 0, 0, 0, pid)
    return (header + payload).ljust(MESSAGE_SIZE, b"\0")


def parse_packet_message(data: bytes) -> PacketInfo:
    """Extract the packet record from a netlink message sent by the kernel."""
    if len(data) < NLMSG_HDRLEN:
        raise ValueError(f"netlink message too short: {len(data)} bytes")
    length = _NLMSG_HEADER.unpack_from(data)[0]
    payload_len = length - NLMSG_HDRLEN
    if payload_len != PACKET_INFO_SIZE:
        raise ValueError(f"unexpected payload size: {payload_len}")
    return PacketInfo.from_bytes(data[NLMSG_HDRLEN : NLMSG_HDRLEN + PACKET_INFO_SIZE])


class NetLinkClient:
    """A netlink socket bound to this process, talking to the kernel module."""

    def __init__(self, sock: Optional[socket.socket] = None, pid: Optional[int] = None) -> None:
        self.pid = os.getpid() if pid is None else pid
        if sock is None:
            sock = socket.socket(socket.AF_NETLINK, socket.SOCK_RAW, NETLINK_USER)
            try:
                sock.bind((self.pid, 0))
            except OSError:
                sock.close()
                raise
        self._sock: Optional[socket.socket] = sock

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise OSError("netlink socket is closed")
        return self._sock

    def send_message(self, msg: str) -> None:
        """Send a text command to the kernel."""
        self._socket().sendto(build_message(msg, self.pid), (0, 0))

    def receive_packet_info(self) -> Optional[PacketInfo]:
        """Block for one packet record; None when the message is unusable."""
        try:
            data = self._socket().recv(MAX_PAYLOAD)
        except OSError as exc:
            log.error("netlink recv failed: %s", exc)
            return None
        try:
            return parse_packet_message(data)
        except ValueError as exc:
            log.error("%s", exc)
            return None

    def close(self) -> None:
        """Close the socket; later calls do nothing."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "NetLinkClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()