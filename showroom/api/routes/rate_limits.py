"""Quota introspection for the calling identity."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from showroom.core.errors import ValidationAppError
from showroom.core.rate_limit import (
    RateLimiterRegistry,
    build_identity,
    get_rate_limit_settings,
    get_rate_limiter_registry,
)
from showroom.schemas.admin import RateLimitInfoResponse

router = APIRouter(prefix="/rate-limits", tags=["Rate limits"])


@router.get("/{category}", response_model=RateLimitInfoResponse)
def get_rate_limit_info(
    category: str,
    request: Request,
    registry: RateLimiterRegistry = Depends(get_rate_limiter_registry),
) -> RateLimitInfoResponse:
    """Report the caller's remaining quota without consuming it."""

    if category not in registry.categories:
        raise ValidationAppError(
            code="unknown_rate_limit_category",
            message=f"Unknown rate limit category '{category}'",
            details={"field": "category", "hint": ", ".join(registry.categories)},
        )

    identity = build_identity(request, get_rate_limit_settings(request).identity_strategy)
    info = registry.info(category, identity)
    return RateLimitInfoResponse(
        category=category,
        limit=info.limit,
        remaining=info.remaining,
        reset_at=info.reset_at,
        retry_after_seconds=info.retry_after_seconds,
    )
