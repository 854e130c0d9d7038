"""Inventory search endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from showroom.api.dependencies import get_inventory, get_search_indexer
from showroom.core.rate_limit import RateLimitCategory, rate_limit
from showroom.schemas.search import (
    AdvancedSearchRequest,
    SearchResult,
    SearchWithSuggestionsResponse,
    SuggestionsResponse,
)
from showroom.services.inventory import InventoryStore
from showroom.services.search_indexer import SearchIndexer

router = APIRouter(prefix="/search", tags=["Search"])

_search_limits = [
    Depends(rate_limit(RateLimitCategory.GENERAL)),
    Depends(rate_limit(RateLimitCategory.SEARCH)),
]


@router.get("", response_model=SearchResult, dependencies=_search_limits)
def search_vehicles(
    q: str = Query(..., max_length=200, description="Free-text query, matched as a substring."),
    max_results: int | None = Query(None, ge=1, le=500),
    min_query_length: int | None = Query(None, ge=1, le=50),
    indexer: SearchIndexer = Depends(get_search_indexer),
    inventory: InventoryStore = Depends(get_inventory),
) -> SearchResult:
    """Search the inventory.

    Matches are returned in inventory order, truncated to ``max_results``;
    ``total`` counts every match.
    """

    return indexer.search(
        q,
        inventory.vehicles,
        max_results=max_results,
        min_query_length=min_query_length,
    )


@router.post("/advanced", response_model=SearchResult, dependencies=_search_limits)
def advanced_search(
    body: AdvancedSearchRequest,
    indexer: SearchIndexer = Depends(get_search_indexer),
    inventory: InventoryStore = Depends(get_inventory),
) -> SearchResult:
    """Search, then filter by brand/model/transmission/fuel/color sets and
    year/price/kilometer ranges."""

    return indexer.advanced_search(
        body.query,
        inventory.vehicles,
        body.filters,
        max_results=body.max_results,
    )


@router.get("/suggestions", response_model=SuggestionsResponse, dependencies=_search_limits)
def search_suggestions(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int | None = Query(None, ge=1, le=50),
    indexer: SearchIndexer = Depends(get_search_indexer),
    inventory: InventoryStore = Depends(get_inventory),
) -> SuggestionsResponse:
    return SuggestionsResponse(
        query=q,
        suggestions=indexer.suggestions(q, inventory.vehicles, limit),
    )


@router.get(
    "/with-suggestions",
    response_model=SearchWithSuggestionsResponse,
    dependencies=_search_limits,
)
def search_with_suggestions(
    q: str = Query(..., max_length=200),
    max_results: int | None = Query(None, ge=1, le=500),
    limit: int | None = Query(None, ge=1, le=50),
    indexer: SearchIndexer = Depends(get_search_indexer),
    inventory: InventoryStore = Depends(get_inventory),
) -> SearchWithSuggestionsResponse:
    """Search results and suggestions for the same query in one round trip."""

    results, suggestions = indexer.search_with_suggestions(
        q,
        inventory.vehicles,
        max_results=max_results,
        limit=limit,
    )
    return SearchWithSuggestionsResponse(results=results, suggestions=suggestions)
