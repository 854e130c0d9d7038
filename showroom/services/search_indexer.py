"""Inventory search: inverted index, result caching, debouncing and filters.

The indexer maps normalized search keys to listing ids. A query matches
every key that contains it as a substring, so lookups scan the (small) key
set instead of every field of every listing. Without an index the same keys
are derived per listing on the fly, which keeps both paths in agreement on
the match set.

The index is a snapshot: callers rebuild it after the collection changes.
Every rebuild bumps a generation that is part of the result cache key, even
when indexing is disabled. Index hits and cached hits are both listing ids,
resolved against the live collection passed to ``search``: listings removed
since the last build are dropped silently and order follows the collection.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from showroom.schemas.search import SearchFilters, SearchResult
from showroom.schemas.vehicle import Vehicle
from showroom.utils.scheduling import Cancellable, Scheduler, ThreadingScheduler
from showroom.utils.ttl_cache import StorageClass, TTLCache, build_cache_key, cached

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 2


@dataclass
class IndexEntry:
    """Listings registered under one search key."""

    record_ids: set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.record_ids)


@dataclass
class _PendingSearch:
    token: object
    handle: Cancellable | None = None


def normalize_query(query: str) -> str:
    return query.strip().lower()


def generate_search_keys(vehicle: Vehicle) -> list[str]:
    """Derive the normalized search keys of a listing.

    Args:
        vehicle: Listing to derive keys from.

    Returns:
        Distinct lowercase keys in derivation order: full text fields,
        numeric fields, composite keys, name words and features.
    """

    keys = [
        vehicle.name.lower(),
        vehicle.brand.lower(),
        vehicle.model.lower(),
        vehicle.color.lower(),
        vehicle.description.lower(),
        str(vehicle.year),
        str(vehicle.price),
        str(vehicle.kilometers),
        f"{vehicle.brand} {vehicle.model}".lower(),
        f"{vehicle.year} {vehicle.brand}".lower(),
        f"{vehicle.transmission} {vehicle.fuel_type}".lower(),
    ]
    keys.extend(word.lower() for word in vehicle.name.split() if len(word) >= MIN_WORD_LENGTH)
    keys.extend(feature.lower() for feature in vehicle.features)

    # dict preserves first-seen order
    return [key for key in dict.fromkeys(k.strip() for k in keys) if key]


class SearchIndexer:
    """Substring search over vehicle listings with a lookaside result cache.

    Attributes:
        cache: Result cache; ``None`` disables caching.
        scheduler: Delayed-call scheduler used by ``search_debounced``.
    """

    def __init__(
        self,
        cache: TTLCache | None = None,
        *,
        scheduler: Scheduler | None = None,
        enable_index: bool = True,
        enable_debounce: bool = True,
        debounce_delay_seconds: float = 0.3,
        max_results: int = 50,
        min_query_length: int = 2,
        search_ttl_seconds: float = 900.0,
        suggestions_limit: int = 10,
    ) -> None:
        if max_results < 1:
            raise ValueError("max_results must be >= 1")
        if min_query_length < 1:
            raise ValueError("min_query_length must be >= 1")
        if debounce_delay_seconds < 0:
            raise ValueError("debounce_delay_seconds must be >= 0")
        if search_ttl_seconds <= 0:
            raise ValueError("search_ttl_seconds must be > 0")
        if suggestions_limit < 1:
            raise ValueError("suggestions_limit must be >= 1")

        self.cache = cache
        self.scheduler = scheduler or ThreadingScheduler()
        self._enable_index = enable_index
        self._enable_debounce = enable_debounce
        self._debounce_delay = debounce_delay_seconds
        self._max_results = max_results
        self._min_query_length = min_query_length
        self._search_ttl = search_ttl_seconds
        self._suggestions_limit = suggestions_limit

        self._lock = threading.RLock()
        self._index: dict[str, IndexEntry] | None = None
        self._indexed_records = 0
        self._generation = 0
        self._pending: dict[tuple[Any, ...], _PendingSearch] = {}

    @property
    def has_index(self) -> bool:
        return self._index is not None

    def build_index(self, records: Iterable[Vehicle]) -> int:
        """Replace the whole index with one built from ``records``.

        Args:
            records: Current listing collection.

        Returns:
            Number of distinct search keys in the new index (0 when indexing
            is disabled).
        """

        if not self._enable_index:
            # the collection changed all the same; retire cached results
            with self._lock:
                self._generation += 1
            logger.debug("search.index_disabled")
            return 0

        index: dict[str, IndexEntry] = {}
        record_count = 0
        for record in records:
            record_count += 1
            for key in generate_search_keys(record):
                index.setdefault(key, IndexEntry()).record_ids.add(record.id)

        with self._lock:
            self._index = index
            self._indexed_records = record_count
            self._generation += 1
            generation = self._generation

        logger.info(
            "search.index_built",
            extra={"index_size": len(index), "records": record_count, "generation": generation},
        )
        return len(index)

    def clear_index(self) -> None:
        """Drop the index; searches fall back to the linear scan."""

        with self._lock:
            self._index = None
            self._indexed_records = 0
            self._generation += 1

    def search(
        self,
        query: str,
        records: Sequence[Vehicle],
        *,
        max_results: int | None = None,
        min_query_length: int | None = None,
    ) -> SearchResult:
        """Find listings with a search key containing ``query``.

        Args:
            query: Free text; matched case-insensitively as a substring.
            records: Live listing collection used to resolve matches.
            max_results: Truncation limit for ``matches`` (``total`` is not
                truncated).
            min_query_length: Shorter queries return an empty result.

        Returns:
            SearchResult with matches in collection order.
        """

        started = time.perf_counter()
        limit = self._max_results if max_results is None else max_results
        matches, from_cache = self._find_all(query, records, min_query_length)
        return SearchResult(
            matches=matches[:limit],
            total=len(matches),
            query=query,
            took_ms=_elapsed_ms(started),
            from_cache=from_cache,
        )

    def advanced_search(
        self,
        query: str,
        records: Sequence[Vehicle],
        filters: SearchFilters | Mapping[str, Any] | None = None,
        *,
        max_results: int | None = None,
        min_query_length: int | None = None,
    ) -> SearchResult:
        """Search, then keep only listings passing ``filters``.

        Filtering runs over the full match list before truncation, so
        ``total`` counts every filtered match.

        Raises:
            pydantic.ValidationError: If ``filters`` is a mapping with unknown
                fields or inverted ranges.
        """

        started = time.perf_counter()
        if filters is None:
            filters = SearchFilters()
        elif not isinstance(filters, SearchFilters):
            filters = SearchFilters.model_validate(filters)

        limit = self._max_results if max_results is None else max_results
        matches, from_cache = self._find_all(query, records, min_query_length)
        filtered = [vehicle for vehicle in matches if filters.matches(vehicle)]
        return SearchResult(
            matches=filtered[:limit],
            total=len(filtered),
            query=query,
            took_ms=_elapsed_ms(started),
            from_cache=from_cache,
        )

    def suggestions(
        self,
        query: str,
        records: Sequence[Vehicle],
        limit: int | None = None,
    ) -> list[str]:
        """Distinct brand/model/year/color values containing ``query``.

        Values keep the order in which they are first met while scanning
        ``records``. Results are memoized in the cache's session store per
        index generation and collection.
        """

        needle = normalize_query(query)
        cap = self._suggestions_limit if limit is None else limit
        if not needle or cap < 1:
            return []
        if self.cache is None:
            return _collect_suggestions(needle, records, cap)

        with self._lock:
            generation = self._generation
        return cached(
            self.cache,
            (generation, [record.id for record in records], needle, cap),
            lambda: _collect_suggestions(needle, records, cap),
            self._search_ttl,
            namespace="suggest",
            storage_class=StorageClass.SESSION,
        )

    def search_with_suggestions(
        self,
        query: str,
        records: Sequence[Vehicle],
        *,
        max_results: int | None = None,
        min_query_length: int | None = None,
        limit: int | None = None,
    ) -> tuple[SearchResult, list[str]]:
        result = self.search(
            query,
            records,
            max_results=max_results,
            min_query_length=min_query_length,
        )
        return result, self.suggestions(query, records, limit)

    def search_debounced(
        self,
        query: str,
        records: Sequence[Vehicle],
        callback: Callable[[SearchResult], None],
        *,
        delay_seconds: float | None = None,
        max_results: int | None = None,
        min_query_length: int | None = None,
    ) -> None:
        """Run ``search`` after a quiet period, coalescing repeated calls.

        A call with the same normalized query and options as a pending one
        cancels it; only the latest call invokes ``callback``. Calls with
        different signatures are independent.
        """

        if not self._enable_debounce:
            callback(
                self.search(
                    query,
                    records,
                    max_results=max_results,
                    min_query_length=min_query_length,
                )
            )
            return

        delay = self._debounce_delay if delay_seconds is None else delay_seconds
        signature = (normalize_query(query), max_results, min_query_length)
        pending = _PendingSearch(token=object())

        def _run() -> None:
            with self._lock:
                current = self._pending.get(signature)
                if current is None or current.token is not pending.token:
                    return
                del self._pending[signature]

            try:
                result = self.search(
                    query,
                    records,
                    max_results=max_results,
                    min_query_length=min_query_length,
                )
                callback(result)
            except Exception:
                logger.exception("search.debounced_failed", extra={"query_length": len(query)})

        with self._lock:
            previous = self._pending.pop(signature, None)
            if previous is not None and previous.handle is not None:
                previous.handle.cancel()
            self._pending[signature] = pending
            pending.handle = self.scheduler.call_later(delay, _run)

    def cancel_pending(self) -> int:
        """Cancel every pending debounced search.

        Returns:
            Number of cancelled searches.
        """

        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()

        for item in pending:
            if item.handle is not None:
                item.handle.cancel()
        return len(pending)

    def dispose(self) -> None:
        """Release timers and the index at host shutdown."""

        cancelled = self.cancel_pending()
        self.clear_index()
        logger.info("search.disposed", extra={"cancelled_debounces": cancelled})

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "index_size": len(self._index) if self._index is not None else 0,
                "indexed_records": self._indexed_records,
                "pending_debounces": len(self._pending),
                "generation": self._generation,
            }

    def _find_all(
        self,
        query: str,
        records: Sequence[Vehicle],
        min_query_length: int | None,
    ) -> tuple[list[Vehicle], bool]:
        """Return every match for ``query`` and whether it came from the cache."""

        needle = normalize_query(query)
        threshold = self._min_query_length if min_query_length is None else min_query_length
        if len(needle) < threshold:
            return [], False

        with self._lock:
            index = self._index
            cache_key = build_cache_key(self._generation, needle, namespace="search")

        cached_ids = self._get_cached_ids(cache_key)
        if cached_ids is not None:
            return _resolve(records, cached_ids), True

        matches: list[Vehicle] | None = None
        strategy = "scan"
        if index is not None:
            try:
                matches = self._lookup(needle, records, index)
                strategy = "index"
            except Exception:
                logger.warning("search.index_lookup_failed", exc_info=True)
        if matches is None:
            matches = self._scan(needle, records)

        if self.cache is not None:
            self.cache.set(cache_key, [vehicle.id for vehicle in matches], self._search_ttl)

        logger.debug(
            "search.completed",
            extra={"strategy": strategy, "total": len(matches), "query_length": len(needle)},
        )
        return matches, False

    def _get_cached_ids(self, cache_key: str) -> set[str] | None:
        if self.cache is None:
            return None

        cached_ids = self.cache.get(cache_key)
        if cached_ids is None:
            return None
        if not isinstance(cached_ids, list) or not all(isinstance(item, str) for item in cached_ids):
            logger.warning("search.cache_entry_invalid", extra={"cache_key": cache_key[:32]})
            self.cache.remove(cache_key)
            return None
        return set(cached_ids)

    @staticmethod
    def _lookup(
        needle: str,
        records: Sequence[Vehicle],
        index: Mapping[str, IndexEntry],
    ) -> list[Vehicle]:
        matching_ids: set[str] = set()
        for key, entry in index.items():
            if needle in key:
                matching_ids.update(entry.record_ids)
        return _resolve(records, matching_ids)

    @staticmethod
    def _scan(needle: str, records: Sequence[Vehicle]) -> list[Vehicle]:
        return [
            record
            for record in records
            if any(needle in key for key in generate_search_keys(record))
        ]


def _resolve(records: Sequence[Vehicle], record_ids: set[str]) -> list[Vehicle]:
    return [record for record in records if record.id in record_ids]


def _collect_suggestions(needle: str, records: Sequence[Vehicle], cap: int) -> list[str]:
    found: dict[str, None] = {}
    for vehicle in records:
        for value in (vehicle.brand, vehicle.model, str(vehicle.year), vehicle.color):
            if value and needle in value.lower() and value not in found:
                found[value] = None
                if len(found) >= cap:
                    return list(found)
    return list(found)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
