"""Routines shared by the daemon and the packet hunter."""

from __future__ import annotations

import threading
from typing import List

from .config import PacketInfo
from .message_queue import MessageQueue
from .netlink_client import NetLinkClient


def recv_packet_info_loop(
    client: NetLinkClient, queue: MessageQueue, running: threading.Event
) -> None:
    """Move packets from the kernel into the queue until stopped.

    Returns when ``running`` is cleared or the kernel sends its stop record.
    """
    while running.is_set():
        packet = client.receive_packet_info()
        if packet is None:
            continue
        if packet.is_stop():
            break
        queue.push(packet)


def drain_queue(queue: MessageQueue) -> List[PacketInfo]:
    """Remove and return every packet still waiting in the queue."""
    drained = []
    while (packet := queue.pop()) is not None:
        drained.append(packet)
    return drained