"""Thread-safe FIFO holding packets between the receiver and the main loop."""

from __future__ import annotations

import threading
from collections import deque
from typing import Optional

from .config import PacketInfo


class MessageQueue:
    """A locked FIFO of packet records."""

    def __init__(self) -> None:
        self._items: deque[PacketInfo] = deque()
        self._lock = threading.Lock()

    def push(self, packet: PacketInfo) -> None:
        """Append a packet at the back."""
        with self._lock:
            self._items.append(packet)

    def pop(self) -> Optional[PacketInfo]:
        """Remove and return the front packet, or None when empty."""
        with self._lock:
            return self._items.popleft() if self._items else None

    def empty(self) -> bool:
        """True when no packet is waiting."""
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)