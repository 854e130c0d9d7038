"""Key-value store interface consumed by the TTL cache."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator


class AbstractKeyValueStore(ABC):
    """String-keyed store of serialized string values."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw value stored under ``key`` or None."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; no-op when absent."""
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the stored keys."""
        raise NotImplementedError

    def size_of(self, key: str) -> int:
        """Return the UTF-8 byte size of the value under ``key`` (0 when absent)."""
        value = self.get(key)
        if value is None:
            return 0
        return len(value.encode("utf-8"))
