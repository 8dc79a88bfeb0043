"""A dictionary guarded by a lock for use across threads."""

from __future__ import annotations

import threading
from typing import Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ThreadSafeMap(Generic[K, V]):
    """Mapping whose operations are each atomic."""

    def __init__(self) -> None:
        self._data: Dict[K, V] = {}
        self._lock = threading.RLock()

    def insert_or_assign(self, key: K, value: V) -> None:
        """Insert the key or replace its value."""
        with self._lock:
            self._data[key] = value

    def get(self, key: K) -> Optional[V]:
        """The value for key, or None when absent."""
        with self._lock:
            return self._data.get(key)

    def erase(self, key: K) -> None:
        """Remove the key if present."""
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._data.clear()

    def snapshot(self) -> Dict[K, V]:
        """A copy of the current contents."""
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)