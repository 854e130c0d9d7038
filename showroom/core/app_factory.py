"""Application factory for the FastAPI app.

Centralizes app construction (components, lifecycle, middleware, handlers,
routers) so tests can build isolated apps with their own settings, stores
and clocks.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from showroom.adapters.storage.base import AbstractKeyValueStore
from showroom.api.routes import (
    admin_router,
    health_router,
    rate_limits_router,
    search_router,
    vehicles_router,
)
from showroom.core.config import Settings, settings as default_settings
from showroom.core.exception_handlers import setup_exception_handlers
from showroom.core.logging import configure_logging
from showroom.core.middleware import request_id_middleware
from showroom.core.openapi import apply_openapi_customizations
from showroom.core.rate_limit import RateLimiterRegistry
from showroom.schemas.vehicle import Vehicle
from showroom.services.inventory import InventoryStore, load_inventory_file
from showroom.services.search_indexer import SearchIndexer
from showroom.utils.scheduling import AsyncioScheduler, Scheduler, ThreadingScheduler
from showroom.utils.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


def run_maintenance(app: FastAPI) -> int:
    """Purge expired cache entries and elapsed rate limit windows.

    Returns:
        Total number of removed entries and windows.
    """

    removed_entries = app.state.cache.cleanup()
    removed_windows = app.state.rate_limiters.cleanup()
    logger.debug(
        "maintenance.completed",
        extra={"removed_entries": removed_entries, "removed_windows": removed_windows},
    )
    return removed_entries + removed_windows


async def _maintenance_loop(app: FastAPI, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            run_maintenance(app)
        except Exception:
            logger.exception("maintenance.failed")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    cfg: Settings = app.state.settings
    run_maintenance(app)
    sweeper = asyncio.create_task(
        _maintenance_loop(app, cfg.cache.cleanup_interval_seconds),
        name="showroom-maintenance",
    )
    logger.info(
        "app.started",
        extra={"vehicles": len(app.state.inventory), "cleanup_interval_s": cfg.cache.cleanup_interval_seconds},
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        app.state.search_indexer.cancel_pending()
        run_maintenance(app)
        logger.info("app.stopped")


def build_scheduler(kind: str) -> Scheduler:
    """Scheduler for debounced searches named by ``SEARCH_DEBOUNCE_SCHEDULER``."""

    if kind == "asyncio":
        # resolves the running loop per call, so debounce from the loop thread
        return AsyncioScheduler()
    return ThreadingScheduler()


def build_components(
    cfg: Settings,
    *,
    store: AbstractKeyValueStore | None = None,
    session_store: AbstractKeyValueStore | None = None,
    scheduler: Scheduler | None = None,
    vehicles: list[Vehicle] | None = None,
) -> tuple[TTLCache, SearchIndexer, RateLimiterRegistry, InventoryStore]:
    """Construct the cache, indexer, limiter registry and inventory from settings."""

    cache = TTLCache(
        store,
        session_store=session_store,
        default_ttl_seconds=cfg.cache.default_ttl_seconds,
        key_prefix=cfg.cache.key_prefix,
    )
    indexer = SearchIndexer(
        cache if cfg.search.enable_cache else None,
        scheduler=scheduler or build_scheduler(cfg.search.debounce_scheduler),
        enable_index=cfg.search.enable_index,
        enable_debounce=cfg.search.enable_debounce,
        debounce_delay_seconds=cfg.search.debounce_delay_seconds,
        max_results=cfg.search.max_results,
        min_query_length=cfg.search.min_query_length,
        search_ttl_seconds=cfg.cache.search_ttl_seconds,
        suggestions_limit=cfg.search.suggestions_limit,
    )
    registry = RateLimiterRegistry.from_settings(cfg.rate_limit)

    if vehicles is None and cfg.app.inventory_seed_path:
        vehicles = load_inventory_file(cfg.app.inventory_seed_path)
    inventory = InventoryStore(indexer, vehicles or [])

    return cache, indexer, registry, inventory


def create_app(
    cfg: Settings | None = None,
    *,
    store: AbstractKeyValueStore | None = None,
    session_store: AbstractKeyValueStore | None = None,
    scheduler: Scheduler | None = None,
    vehicles: list[Vehicle] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to use; defaults to the environment-loaded settings.
        store: Durable key-value store for the cache (in-memory by default).
        session_store: Process-lifetime store for the cache's session
            storage class (suggestions); in-memory by default.
        scheduler: Scheduler for debounced searches; defaults to the one
            named by ``SEARCH_DEBOUNCE_SCHEDULER``.
        vehicles: Initial inventory; overrides ``APP_INVENTORY_SEED_PATH``.

    Returns:
        Configured FastAPI app with components on ``app.state``.
    """
    cfg = cfg if cfg is not None else default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title="Showroom Search API",
        description=(
            "Vehicle inventory search for a car dealership storefront: substring "
            "search over an inverted index with a TTL result cache, filtered "
            "search, suggestions, and per-category fixed-window rate limits."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )

    cache, indexer, registry, inventory = build_components(
        cfg,
        store=store,
        session_store=session_store,
        scheduler=scheduler,
        vehicles=vehicles,
    )
    app.state.settings = cfg
    app.state.cache = cache
    app.state.search_indexer = indexer
    app.state.rate_limiters = registry
    app.state.inventory = inventory

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(search_router, prefix="/v1")
    app.include_router(vehicles_router, prefix="/v1")
    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
