"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Fixed windows: a burst straddling a window boundary can pass up to twice
  the limit within one window length.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from showroom.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult, RateLimitStats


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per identity.

    Counters are keyed by ``(identity, window_index)`` where
    ``window_index = floor(now / window_seconds)``. A counter is created by
    the first request of a window and purged once its window has elapsed;
    purging runs on every ``consume`` and on explicit ``cleanup`` calls.
    Denied requests do not increment the counter.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[tuple[str, int], _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _window_index(self, now: float) -> int:
        return math.floor(now / self._window_seconds)

    def _get_window_bounds(self, now: float) -> tuple[int, float, float]:
        """Compute fixed-window boundaries for a given timestamp.

        Returns:
            Tuple of (window_index, window_start, reset_at) in epoch seconds.
        """
        index = self._window_index(now)
        window_start = index * self._window_seconds
        return index, window_start, window_start + self._window_seconds

    def _purge_expired_locked(self, now: float) -> int:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if state.window_start + self._window_seconds <= now
        ]
        for key in expired:
            del self._state_by_key[key]
        return len(expired)

    def _build_allowed_result(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=max(0.0, reset_at - now),
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        This method both checks the current window usage and mutates the state
        if the request is allowed.

        Args:
            key: Caller identity (e.g., ``"ip:203.0.113.7"``).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        index, window_start, reset_at = self._get_window_bounds(now)

        with self._lock:
            self._purge_expired_locked(now)
            state = self._state_by_key.get((key, index))

            if (state.count if state else 0) + cost <= self._limit:
                if state is None:
                    state = _WindowState(window_start=window_start, count=0)
                    self._state_by_key[(key, index)] = state
                state.count += cost
                return self._build_allowed_result(
                    remaining=self._limit - state.count,
                    reset_at=reset_at,
                )

            return self._build_blocked_result(now=now, reset_at=reset_at)

    def reset_limit(self, identity: str) -> None:
        if not identity:
            raise ValueError("identity must be a non-empty string")

        index, _, _ = self._get_window_bounds(self._clock())
        with self._lock:
            self._state_by_key.pop((identity, index), None)

    def get_limit_info(self, identity: str) -> RateLimitResult:
        """Report what the next ``check_limit`` would see, without counting.

        ``allowed`` tells whether one more request would currently pass.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")

        now = self._clock()
        index, _, reset_at = self._get_window_bounds(now)
        with self._lock:
            state = self._state_by_key.get((identity, index))
            used = state.count if state else 0

        remaining = max(0, self._limit - used)
        if remaining:
            return self._build_allowed_result(remaining=remaining, reset_at=reset_at)
        return self._build_blocked_result(now=now, reset_at=reset_at)

    def cleanup(self) -> int:
        with self._lock:
            return self._purge_expired_locked(self._clock())

    def stats(self) -> RateLimitStats:
        now = self._clock()
        with self._lock:
            states = list(self._state_by_key.values())

        return RateLimitStats(
            total_keys=len(states),
            total_requests=sum(state.count for state in states),
            active_windows=sum(
                1 for state in states if state.window_start + self._window_seconds > now
            ),
        )
