"""TTL key-value cache backed by an injected key-value store.

Entries are serialized to JSON (optionally base64 "compressed") and written
under a namespace prefix, so several logical caches can share one store
without collisions. The cache is a best-effort lookaside layer: decode and
storage failures are logged and reported as misses, never raised.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from hashlib import sha256
from typing import Any, Callable, Sequence

from showroom.adapters.storage.base import AbstractKeyValueStore
from showroom.adapters.storage.in_memory import InMemoryKeyValueStore

logger = logging.getLogger(__name__)

# Returned by get() when the caller needs to tell a stored None from a miss.
MISSING: Any = object()


class StorageClass(str, Enum):
    """Which underlying store an entry lives in."""

    LOCAL = "local"
    SESSION = "session"


class CacheDecodeError(ValueError):
    """Raised internally when a stored payload cannot be decoded."""


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    created_at: float
    ttl_seconds: float
    key: str

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds


class TTLCache:
    """Namespaced TTL cache over one "local" and one "session" store.

    "local" is the durable store handed in by the host; "session" holds
    process-lifetime data that is cheap to recompute (search suggestions).

    Attributes:
        default_ttl_seconds: TTL applied when ``set`` gets no positive TTL.
        key_prefix: Namespace prepended to every key written to the stores.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore | None = None,
        *,
        session_store: AbstractKeyValueStore | None = None,
        default_ttl_seconds: float = 3600.0,
        key_prefix: str = "slc_cache_",
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        if not key_prefix:
            raise ValueError("key_prefix must be a non-empty string")

        self._stores: dict[StorageClass, AbstractKeyValueStore] = {
            StorageClass.LOCAL: store if store is not None else InMemoryKeyValueStore(),
            StorageClass.SESSION: session_store if session_store is not None else InMemoryKeyValueStore(),
        }
        self._default_ttl = default_ttl_seconds
        self._prefix = key_prefix
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TTLCache(prefix={self._prefix!r}, default_ttl_seconds={self._default_ttl}, "
            f"hits={self._hits}, misses={self._misses})"
        )

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    @property
    def key_prefix(self) -> str:
        return self._prefix

    def get(
        self,
        key: str,
        default: Any = None,
        *,
        storage_class: StorageClass | str = StorageClass.LOCAL,
        compress: bool = False,
    ) -> Any:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key (without prefix).
            default: Returned on a miss.
            storage_class: Store to read from.
            compress: Whether the entry was written compressed. Decoding
                falls back to the other format, so a mismatch still reads.

        Returns:
            Cached value or ``default`` if not found, expired or unreadable.
        """

        store = self._store_for(storage_class)
        storage_key = self._storage_key(key)

        with self._lock:
            raw = self._store_call(store.get, storage_key)
            if raw is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:32], "reason": "not_found"})
                return default

            try:
                item = self._decode(raw, compress=compress)
            except CacheDecodeError:
                self._misses += 1
                logger.warning(
                    "cache.decode_failed",
                    extra={"cache_key": key[:32], "storage_class": StorageClass(storage_class).value},
                )
                return default

            if item.is_expired(time.time()):
                self._store_call(store.remove, storage_key)
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:32], "reason": "expired"})
                return default

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key[:32]})
            return item.value

    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        storage_class: StorageClass | str = StorageClass.LOCAL,
        compress: bool = False,
    ) -> None:
        """Store a JSON-serializable value, overwriting any previous entry.

        Args:
            key: Cache key (without prefix).
            value: Value to store.
            ttl_seconds: Lifetime; ``None`` or non-positive uses the default.
            storage_class: Store to write to.
            compress: Base64-encode the serialized entry.
        """

        store = self._store_for(storage_class)
        ttl = ttl_seconds if ttl_seconds is not None and ttl_seconds > 0 else self._default_ttl
        item = CacheItem(value=value, created_at=time.time(), ttl_seconds=ttl, key=key)

        try:
            payload = self._encode(item, compress=compress)
        except (TypeError, ValueError):
            logger.warning("cache.encode_failed", extra={"cache_key": key[:32]}, exc_info=True)
            return

        with self._lock:
            self._store_call(store.set, self._storage_key(key), payload)

        logger.debug(
            "cache.set",
            extra={"cache_key": key[:32], "ttl_s": ttl, "compressed": compress},
        )

    def has(self, key: str, *, storage_class: StorageClass | str = StorageClass.LOCAL) -> bool:
        """Return True when ``key`` holds an unexpired value (expired entries are dropped)."""

        return self.get(key, MISSING, storage_class=storage_class) is not MISSING

    def remove(self, key: str, *, storage_class: StorageClass | str = StorageClass.LOCAL) -> None:
        store = self._store_for(storage_class)
        with self._lock:
            self._store_call(store.remove, self._storage_key(key))

    def clear(self) -> None:
        """Remove every entry owned by this cache in all storage classes."""

        with self._lock:
            for store in self._stores.values():
                for storage_key in self._owned_keys(store):
                    self._store_call(store.remove, storage_key)
        logger.info("cache.cleared", extra={"prefix": self._prefix})

    def cleanup(self) -> int:
        """Delete expired and undecodable entries.

        Returns:
            Number of entries removed.
        """

        removed = 0
        now = time.time()
        with self._lock:
            for store in self._stores.values():
                for storage_key in self._owned_keys(store):
                    raw = self._store_call(store.get, storage_key)
                    if raw is None:
                        continue
                    try:
                        expired = self._decode(raw, compress=False).is_expired(now)
                    except CacheDecodeError:
                        expired = True
                    if expired:
                        self._store_call(store.remove, storage_key)
                        removed += 1

        if removed:
            logger.info("cache.cleanup", extra={"removed": removed})
        return removed

    def keys(self, *, storage_class: StorageClass | str = StorageClass.LOCAL) -> list[str]:
        """Return owned keys (without prefix) in the given store."""

        store = self._store_for(storage_class)
        with self._lock:
            return [k[len(self._prefix):] for k in self._owned_keys(store)]

    def size(self, *, storage_class: StorageClass | str = StorageClass.LOCAL) -> int:
        return len(self.keys(storage_class=storage_class))

    def stats(self) -> dict[str, int | float]:
        """Return cache metrics without exposing values."""

        with self._lock:
            item_count = 0
            total_bytes = 0
            for store in self._stores.values():
                for storage_key in self._owned_keys(store):
                    item_count += 1
                    total_bytes += self._store_call(store.size_of, storage_key) or 0

            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests else 0.0
            return {
                "item_count": item_count,
                "total_bytes": total_bytes,
                "hit_count": self._hits,
                "miss_count": self._misses,
                "hit_rate": hit_rate,
            }

    def _store_for(self, storage_class: StorageClass | str) -> AbstractKeyValueStore:
        try:
            return self._stores[StorageClass(storage_class)]
        except ValueError as exc:
            raise ValueError(f"unknown storage class: {storage_class!r}") from exc

    def _storage_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _owned_keys(self, store: AbstractKeyValueStore) -> list[str]:
        keys = self._store_call(store.keys)
        if keys is None:
            return []
        return [k for k in keys if k.startswith(self._prefix)]

    def _store_call(self, func, *args):
        """Invoke a store operation, degrading to None when the store fails."""

        try:
            return func(*args)
        except Exception:  # noqa: BLE001 - the cache must never break its caller
            logger.warning(
                "cache.store_error",
                extra={"operation": getattr(func, "__name__", "unknown")},
                exc_info=True,
            )
            return None

    @staticmethod
    def _encode(item: CacheItem, *, compress: bool) -> str:
        serialized = json.dumps(asdict(item), separators=(",", ":"))
        if compress:
            return base64.b64encode(serialized.encode("utf-8")).decode("ascii")
        return serialized

    @staticmethod
    def _decode(raw: str, *, compress: bool) -> CacheItem:
        decoders = (_decode_base64, json.loads) if compress else (json.loads, _decode_base64)
        for decoder in decoders:
            try:
                data = decoder(raw)
                return CacheItem(
                    value=data["value"],
                    created_at=float(data["created_at"]),
                    ttl_seconds=float(data["ttl_seconds"]),
                    key=str(data["key"]),
                )
            except (ValueError, TypeError, KeyError, binascii.Error):
                continue
        raise CacheDecodeError("stored cache entry could not be decoded")


def _decode_base64(raw: str) -> Any:
    return json.loads(base64.b64decode(raw.encode("ascii"), validate=True).decode("utf-8"))


def build_cache_key(*parts: Any, namespace: str | None = None) -> str:
    """Build a stable cache key from JSON-serializable parts.

    Args:
        parts: Values identifying the cached computation.
        namespace: Optional readable prefix (e.g. ``"search"``).

    Returns:
        ``"<namespace>_<sha256 hex>"`` or the bare digest without namespace.
    """

    hasher = sha256()
    hasher.update(json.dumps(parts, sort_keys=True, default=str).encode("utf-8"))
    digest = hasher.hexdigest()
    return f"{namespace}_{digest}" if namespace else digest


def cached(
    cache: TTLCache,
    key_parts: Sequence[Any],
    compute: Callable[[], Any],
    ttl_seconds: float | None = None,
    *,
    namespace: str | None = None,
    storage_class: StorageClass | str = StorageClass.LOCAL,
) -> Any:
    """Return the cached value for ``key_parts`` or compute and store it.

    Args:
        cache: Cache to read from and write to.
        key_parts: Values identifying the computation, passed to
            ``build_cache_key``.
        compute: Zero-argument callable producing a JSON-serializable value.
        ttl_seconds: Lifetime of a freshly computed value.
        namespace: Readable key prefix.
        storage_class: Store holding the value.

    Returns:
        The cached value, which may be a stored ``None``, or the fresh result.
    """

    key = build_cache_key(*key_parts, namespace=namespace)
    value = cache.get(key, MISSING, storage_class=storage_class)
    if value is not MISSING:
        return value

    value = compute()
    cache.set(key, value, ttl_seconds, storage_class=storage_class)
    return value
