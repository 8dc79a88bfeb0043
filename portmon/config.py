"""Shared constants and the packet record exchanged with the kernel sniffer."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Union

NETLINK_USER = 31
MAX_PAYLOAD = 1024
SOCKET_FILE_ADDRESS = "/var/run/hut_karish-daemon.sock"

# Layout of the kernel record: two IPv4 addresses in network byte order,
# two ports and the payload size in host byte order, a protocol byte,
# then padding to the structure's 4-byte alignment.
_PACKET_STRUCT = struct.Struct("=4s4sHHIc3x")
PACKET_INFO_SIZE = _PACKET_STRUCT.size

_PROTOCOL_NAMES = {"T": "TCP", "U": "UDP"}


class Protocol(str, Enum):
    """Transport protocols reported by the sniffer."""

    TCP = "T"
    UDP = "U"


IPv4Like = Union[ipaddress.IPv4Address, str, int, bytes]


@dataclass(frozen=True)
class PacketInfo:
    """One packet as reported by the kernel module."""

    src_ip: ipaddress.IPv4Address
    dst_ip: ipaddress.IPv4Address
    src_port: int
    dst_port: int
    proto: str
    payload_size: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "src_ip", ipaddress.IPv4Address(self.src_ip))
        object.__setattr__(self, "dst_ip", ipaddress.IPv4Address(self.dst_ip))
        for name in ("src_port", "dst_port"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{name} out of range: {value}")
        if not 0 <= self.payload_size <= 0xFFFFFFFF:
            raise ValueError(f"payload_size out of range: {self.payload_size}")
        proto = self.proto.value if isinstance(self.proto, Protocol) else self.proto
        if not isinstance(proto, str) or len(proto) != 1:
            raise ValueError(f"protocol must be a single character: {proto!r}")
        object.__setattr__(self, "proto", proto)

    def pack(self) -> bytes:
        """Encode the record in the kernel's binary layout."""
        return _PACKET_STRUCT.pack(
            self.src_ip.packed,
            self.dst_ip.packed,
            self.src_port,
            self.dst_port,
            self.payload_size,
            self.proto.encode("latin-1"),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "PacketInfo":
        """Decode a record from the kernel's binary layout."""
        if len(data) != PACKET_INFO_SIZE:
            raise ValueError(
                f"packet info must be {PACKET_INFO_SIZE} bytes, got {len(data)}"
            )
        src, dst, src_port, dst_port, payload_size, proto = _PACKET_STRUCT.unpack(data)
        return cls(src, dst, src_port, dst_port, proto.decode("latin-1"), payload_size)

    def is_stop(self) -> bool:
        """True for the empty record the kernel sends to end a subscription."""
        return (
            int(self.src_ip) == 0
            and int(self.dst_ip) == 0
            and self.src_port == 0
            and self.dst_port == 0
        )

    def protocol_name(self) -> str:
        """Full protocol name: TCP, UDP or other."""
        return _PROTOCOL_NAMES.get(self.proto, "other")