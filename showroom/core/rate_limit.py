"""Rate limiting wiring for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency factory only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Explicit instances: the app factory builds one registry per application
  and stores it on ``app.state``; there is no module-level limiter.

Rate limiting strategy:
- Independent fixed-window limits per request category (general, auth,
  search, upload, messaging).
- Callers are identified by client address, user id, session id or a
  composite of all three (default).
"""

from __future__ import annotations

import hashlib
import logging
import math
import time
from enum import Enum
from typing import Callable, Mapping

from fastapi import HTTPException, Request, Response, status

from showroom.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult, RateLimitStats
from showroom.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from showroom.core.config import RateLimitSettings, settings

logger = logging.getLogger(__name__)


class RateLimitCategory(str, Enum):
    GENERAL = "general"
    AUTH = "auth"
    SEARCH = "search"
    UPLOAD = "upload"
    MESSAGING = "messaging"


class IdentityStrategy(str, Enum):
    IP = "ip"
    USER = "user"
    SESSION = "session"
    COMBINED = "combined"


class RateLimiterRegistry:
    """Named, independently configured limiters sharing one lifecycle."""

    def __init__(self, limiters: Mapping[RateLimitCategory | str, AbstractRateLimiter]) -> None:
        self._limiters = {RateLimitCategory(name): limiter for name, limiter in limiters.items()}

    @classmethod
    def from_settings(
        cls,
        rate_limit_settings: RateLimitSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "RateLimiterRegistry":
        """Build one in-memory fixed-window limiter per configured category."""

        return cls(
            {
                name: InMemoryFixedWindowRateLimiter(
                    limit=limit,
                    window_seconds=window_seconds,
                    clock=clock,
                )
                for name, (limit, window_seconds) in rate_limit_settings.category_limits().items()
            }
        )

    @property
    def categories(self) -> list[str]:
        return [category.value for category in self._limiters]

    def get(self, category: RateLimitCategory | str) -> AbstractRateLimiter:
        try:
            return self._limiters[RateLimitCategory(category)]
        except (ValueError, KeyError) as exc:
            raise ValueError(f"unknown rate limit category: {category!r}") from exc

    def check(self, category: RateLimitCategory | str, identity: str) -> RateLimitResult:
        return self.get(category).check_limit(identity)

    def reset(self, category: RateLimitCategory | str, identity: str) -> None:
        self.get(category).reset_limit(identity)

    def info(self, category: RateLimitCategory | str, identity: str) -> RateLimitResult:
        return self.get(category).get_limit_info(identity)

    def cleanup(self) -> int:
        return sum(limiter.cleanup() for limiter in self._limiters.values())

    def stats(self) -> dict[str, RateLimitStats]:
        return {category.value: limiter.stats() for category, limiter in self._limiters.items()}


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


def get_user_id(request: Request) -> str:
    return request.headers.get("x-user-id") or "anonymous"


def get_session_id(request: Request) -> str:
    return (
        request.headers.get("x-session-id")
        or request.cookies.get("session_id")
        or "unknown"
    )


def build_identity(request: Request, strategy: IdentityStrategy | str = IdentityStrategy.COMBINED) -> str:
    """Build the limiter identity for the current request.

    Args:
        request: FastAPI request.
        strategy: Which caller attributes make up the identity.

    Returns:
        str: Namespaced identity, e.g. ``"ip:203.0.113.7"``.
    """

    strategy = IdentityStrategy(strategy)
    if strategy is IdentityStrategy.IP:
        return f"ip:{get_client_ip(request)}"
    if strategy is IdentityStrategy.USER:
        return f"user:{get_user_id(request)}"
    if strategy is IdentityStrategy.SESSION:
        return f"session:{get_session_id(request)}"
    return f"combined:{get_client_ip(request)}:{get_user_id(request)}:{get_session_id(request)}"


def hash_identity(identity: str) -> str:
    """Hash the identity for logging without exposing addresses or sessions."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def get_rate_limiter_registry(request: Request) -> RateLimiterRegistry:
    return request.app.state.rate_limiters


def get_rate_limit_settings(request: Request) -> RateLimitSettings:
    """Settings of the app serving the request (falls back to global settings)."""
    app_settings = getattr(request.app.state, "settings", None) or settings
    return app_settings.rate_limit


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(math.ceil(result.reset_at))),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(int(math.ceil(result.retry_after_seconds)))
    return headers


def rate_limit(category: RateLimitCategory | str):
    """Create a FastAPI dependency enforcing the limit of ``category``.

    When enabled, consumes 1 unit from the requester's budget. If the
    requester exceeds the configured rate, raises HTTP 429.

    Usage:
        @router.get("/search", dependencies=[Depends(rate_limit("search"))])
    """

    category = RateLimitCategory(category)

    async def enforce_rate_limit(request: Request, response: Response) -> None:
        cfg = get_rate_limit_settings(request)
        if not cfg.enabled:
            return

        registry = get_rate_limiter_registry(request)
        identity = build_identity(request, cfg.identity_strategy)
        result = registry.check(category, identity)
        log_extra = {
            "category": category.value,
            "identity_hash": hash_identity(identity),
            "limit": result.limit,
            "remaining": result.remaining,
        }

        if result.allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
            if cfg.include_headers:
                response.headers.update(rate_limit_headers(result))
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={**log_extra, "retry_after_s": result.retry_after_seconds},
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=rate_limit_headers(result) if cfg.include_headers else None,
        )

    enforce_rate_limit.__name__ = f"enforce_{category.value}_rate_limit"
    return enforce_rate_limit
