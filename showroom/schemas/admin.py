"""Pydantic schemas for diagnostics and quota responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CacheStatsResponse(BaseModel):
    item_count: int
    total_bytes: int
    hit_count: int
    miss_count: int
    hit_rate: float = Field(..., description="hits / (hits + misses), 0 before any lookup.")


class IndexStatsResponse(BaseModel):
    index_size: int
    indexed_records: int
    pending_debounces: int
    generation: int


class RateLimitStatsResponse(BaseModel):
    total_keys: int
    total_requests: int
    active_windows: int


class AdminStatsResponse(BaseModel):
    cache: CacheStatsResponse
    index: IndexStatsResponse
    rate_limits: dict[str, RateLimitStatsResponse]
    vehicles: int


class CleanupResponse(BaseModel):
    removed: int = Field(..., description="Number of expired entries removed.")


class RateLimitInfoResponse(BaseModel):
    """Quota of the calling identity in one category."""

    category: str
    limit: int
    remaining: int
    reset_at: float = Field(..., description="UNIX epoch seconds when the window ends.")
    retry_after_seconds: float | None = None
