"""Admin diagnostics and maintenance endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Response, status

from showroom.api.dependencies import get_cache, get_inventory, get_search_indexer
from showroom.core.auth import verify_api_key
from showroom.core.errors import ValidationAppError
from showroom.core.rate_limit import (
    RateLimitCategory,
    RateLimiterRegistry,
    get_rate_limiter_registry,
    hash_identity,
    rate_limit,
)
from showroom.schemas.admin import AdminStatsResponse, CleanupResponse
from showroom.services.inventory import InventoryStore
from showroom.services.search_indexer import SearchIndexer
from showroom.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(rate_limit(RateLimitCategory.AUTH)), Depends(verify_api_key)],
)


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(
    cache: TTLCache = Depends(get_cache),
    indexer: SearchIndexer = Depends(get_search_indexer),
    registry: RateLimiterRegistry = Depends(get_rate_limiter_registry),
    inventory: InventoryStore = Depends(get_inventory),
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(
        {
            "cache": cache.stats(),
            "index": indexer.stats(),
            "rate_limits": {name: asdict(stats) for name, stats in registry.stats().items()},
            "vehicles": len(inventory),
        }
    )


@router.post("/cache/cleanup", response_model=CleanupResponse)
def cleanup_cache(cache: TTLCache = Depends(get_cache)) -> CleanupResponse:
    return CleanupResponse(removed=cache.cleanup())


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
def clear_cache(cache: TTLCache = Depends(get_cache)) -> Response:
    cache.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/rate-limits/{category}/{identity:path}", status_code=status.HTTP_204_NO_CONTENT)
def reset_rate_limit(
    category: str,
    identity: str,
    registry: RateLimiterRegistry = Depends(get_rate_limiter_registry),
) -> Response:
    """Restore the full quota of ``identity`` in ``category``.

    ``identity`` is the namespaced limiter key, e.g. ``ip:203.0.113.7``.
    """

    if category not in registry.categories:
        raise ValidationAppError(
            code="unknown_rate_limit_category",
            message=f"Unknown rate limit category '{category}'",
            details={"field": "category", "hint": ", ".join(registry.categories)},
        )

    registry.reset(category, identity)
    logger.info(
        "rate_limit.reset",
        extra={"category": category, "identity_hash": hash_identity(identity)},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
