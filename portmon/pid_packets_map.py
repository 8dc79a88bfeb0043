"""Packets captured by the packet hunter, grouped by the receiving process."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from .config import PacketInfo


def _identity(packet: PacketInfo) -> tuple:
    return (packet.src_ip, packet.dst_ip, packet.src_port, packet.dst_port, packet.proto)


class PidToPacketsInfoMap:
    """Packets keyed by pid, in the order they were inserted."""

    def __init__(self) -> None:
        self._map: Dict[int, List[PacketInfo]] = {}

    def insert_packet_info(self, pid: Optional[int], packet: PacketInfo) -> None:
        """Record a packet for ``pid``; packets with an unknown pid are dropped."""
        if pid is None or pid == -1:
            return
        self._map.setdefault(pid, []).append(packet)

    def contains_packet(self, packet: PacketInfo) -> bool:
        """True if a packet with the same addresses, ports and protocol is stored."""
        wanted = _identity(packet)
        return any(
            _identity(stored) == wanted
            for packets in self._map.values()
            for stored in packets
        )

    def items(self) -> Iterator[Tuple[int, Tuple[PacketInfo, ...]]]:
        """Yield ``(pid, packets)`` pairs in insertion order."""
        for pid, packets in self._map.items():
            yield pid, tuple(packets)

    def __len__(self) -> int:
        return sum(len(packets) for packets in self._map.values())