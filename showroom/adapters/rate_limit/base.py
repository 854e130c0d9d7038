"""Rate limiter interfaces.

Routes and the limiter registry only see ``AbstractRateLimiter``; the
in-memory fixed-window implementation can be replaced by a shared store
(e.g. Redis) when the API runs on several workers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Time until the window ends, only when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: float | None = None


@dataclass(frozen=True)
class RateLimitStats:
    """Aggregate counters across all tracked identities."""

    total_keys: int
    total_requests: int
    active_windows: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Count ``cost`` units against ``key`` in the current window.

        Args:
            key: Caller identity (e.g., ``"ip:203.0.113.7"``).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def check_limit(self, identity: str) -> RateLimitResult:
        """Count one request for ``identity``."""
        return self.consume(identity, cost=1)

    @abstractmethod
    def reset_limit(self, identity: str) -> None:
        """Restore the full quota of ``identity`` in the current window."""
        raise NotImplementedError

    @abstractmethod
    def get_limit_info(self, identity: str) -> RateLimitResult:
        """Report the current quota of ``identity`` without consuming it."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Purge elapsed windows and return how many were removed."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> RateLimitStats:
        raise NotImplementedError
