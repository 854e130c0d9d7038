"""FastAPI dependencies handing application-scoped components to routes.

The app factory builds every component once and stores it on ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from showroom.services.inventory import InventoryStore
from showroom.services.search_indexer import SearchIndexer
from showroom.utils.ttl_cache import TTLCache


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_search_indexer(request: Request) -> SearchIndexer:
    return request.app.state.search_indexer


def get_inventory(request: Request) -> InventoryStore:
    return request.app.state.inventory
