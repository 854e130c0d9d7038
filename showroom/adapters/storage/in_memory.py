"""In-memory key-value store.

Notes:
- Per-process only: contents vanish on restart.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
from typing import Iterator

from showroom.adapters.storage.base import AbstractKeyValueStore


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dictionary-backed store, used as the default cache backend and in tests."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("value must be a str")
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._data)
        return iter(snapshot)
