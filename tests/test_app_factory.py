"""Tests for app construction, settings wiring and lifecycle maintenance."""

import json

from fastapi.testclient import TestClient

from showroom.adapters.storage.in_memory import InMemoryKeyValueStore
from showroom.core.app_factory import create_app, run_maintenance
from showroom.core.config import AppSettings, CacheSettings, SearchSettings, Settings
from showroom.utils.scheduling import AsyncioScheduler, ThreadingScheduler


def test_components_follow_settings(vehicles, fake_scheduler) -> None:
    cfg = Settings(
        cache=CacheSettings(key_prefix="test_", default_ttl_seconds=60),
        search=SearchSettings(enable_cache=False),
    )
    app = create_app(cfg, scheduler=fake_scheduler, vehicles=vehicles)

    assert app.state.cache.key_prefix == "test_"
    assert app.state.cache.default_ttl_seconds == 60
    assert app.state.search_indexer.cache is None
    assert app.state.search_indexer.scheduler is fake_scheduler
    assert len(app.state.inventory) == 4


def test_apps_do_not_share_state(vehicles) -> None:
    first = create_app(Settings(), vehicles=vehicles)
    second = create_app(Settings(), vehicles=[])

    assert first.state.cache is not second.state.cache
    assert first.state.rate_limiters is not second.state.rate_limiters
    assert len(second.state.inventory) == 0


def test_inventory_is_loaded_from_seed_file(tmp_path) -> None:
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps([{"id": "s1", "name": "Fiat Uno"}]), encoding="utf-8")

    app = create_app(Settings(app=AppSettings(inventory_seed_path=str(seed))))

    assert [vehicle.id for vehicle in app.state.inventory.vehicles] == ["s1"]


def test_run_maintenance_purges_cache_and_limiters(vehicles) -> None:
    store = InMemoryKeyValueStore()
    app = create_app(Settings(), store=store, vehicles=vehicles)
    app.state.cache.set("expired", 1)
    # age the stored entry past the default TTL
    raw = json.loads(store.get("slc_cache_expired"))
    raw["created_at"] -= 10_000
    store.set("slc_cache_expired", json.dumps(raw))

    assert run_maintenance(app) == 1
    assert app.state.cache.has("expired") is False


def test_shutdown_cancels_pending_debounced_searches(vehicles, fake_scheduler) -> None:
    app = create_app(Settings(), scheduler=fake_scheduler, vehicles=vehicles)
    results = []

    with TestClient(app):
        indexer = app.state.search_indexer
        indexer.search_debounced("honda", app.state.inventory.vehicles, results.append)
        assert indexer.stats()["pending_debounces"] == 1

    fake_scheduler.advance(1.0)
    assert results == []
    assert app.state.search_indexer.stats()["pending_debounces"] == 0


def test_openapi_marks_protected_routes(vehicles) -> None:
    schema = create_app(Settings(), vehicles=vehicles).openapi()

    assert schema["paths"]["/v1/admin/stats"]["get"]["security"] == [{"ApiKeyAuth": []}]
    assert "security" not in schema["paths"]["/v1/search"]["get"]


def test_session_store_backs_suggestions(vehicles) -> None:
    session_store = InMemoryKeyValueStore()
    app = create_app(Settings(), session_store=session_store, vehicles=vehicles)

    app.state.search_indexer.suggestions("mazda", app.state.inventory.vehicles)

    assert [key for key in session_store.keys() if key.startswith("slc_cache_suggest_")]


def test_debounce_scheduler_follows_settings(vehicles) -> None:
    threaded = create_app(Settings(), vehicles=vehicles)
    on_loop = create_app(
        Settings(search=SearchSettings(debounce_scheduler="asyncio")),
        vehicles=vehicles,
    )

    assert isinstance(threaded.state.search_indexer.scheduler, ThreadingScheduler)
    assert isinstance(on_loop.state.search_indexer.scheduler, AsyncioScheduler)
