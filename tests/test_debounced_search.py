"""Unit tests for debounced search scheduling."""

import asyncio

import pytest

from showroom.services.search_indexer import SearchIndexer
from showroom.utils.scheduling import AsyncioScheduler


def _debouncing_indexer(scheduler, **kwargs) -> SearchIndexer:
    return SearchIndexer(
        None,
        scheduler=scheduler,
        debounce_delay_seconds=0.25,
        **kwargs,
    )


def test_rapid_calls_fire_once_with_last_arguments(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler)
    indexer.build_index(vehicles)
    results = []

    indexer.search_debounced("white", vehicles, results.append, max_results=3)
    fake_scheduler.advance(0.125)
    indexer.search_debounced("WHITE", vehicles, results.append, max_results=3)
    fake_scheduler.advance(0.125)
    indexer.search_debounced(" white ", vehicles[:1], results.append, max_results=3)

    fake_scheduler.advance(0.125)
    assert results == []

    fake_scheduler.advance(0.125)
    assert len(results) == 1
    assert results[0].query == " white "
    assert [vehicle.id for vehicle in results[0].matches] == ["1"]
    assert indexer.stats()["pending_debounces"] == 0


def test_different_signatures_are_independent(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler)
    indexer.build_index(vehicles)
    results = []

    indexer.search_debounced("honda", vehicles, results.append)
    indexer.search_debounced("toyota", vehicles, results.append)
    indexer.search_debounced("honda", vehicles, results.append, max_results=1)

    fake_scheduler.advance(0.25)

    assert sorted(result.query for result in results) == ["honda", "honda", "toyota"]


def test_explicit_delay_overrides_default(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler)
    results = []

    indexer.search_debounced("mazda", vehicles, results.append, delay_seconds=1.0)
    fake_scheduler.advance(0.5)
    assert results == []

    fake_scheduler.advance(0.5)
    assert len(results) == 1


def test_cancel_pending_prevents_callbacks(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler)
    results = []

    indexer.search_debounced("honda", vehicles, results.append)
    indexer.search_debounced("toyota", vehicles, results.append)

    assert indexer.cancel_pending() == 2
    fake_scheduler.advance(1.0)

    assert results == []
    assert fake_scheduler.pending == 0


def test_dispose_cancels_and_drops_index(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler)
    indexer.build_index(vehicles)
    results = []
    indexer.search_debounced("honda", vehicles, results.append)

    indexer.dispose()
    fake_scheduler.advance(1.0)

    assert results == []
    assert indexer.has_index is False


def test_disabled_debounce_runs_immediately(fake_scheduler, vehicles) -> None:
    indexer = _debouncing_indexer(fake_scheduler, enable_debounce=False)
    results = []

    indexer.search_debounced("tesla", vehicles, results.append)

    assert [vehicle.id for vehicle in results[0].matches] == ["4"]
    assert fake_scheduler.pending == 0


def test_failing_callback_is_logged_not_raised(fake_scheduler, vehicles, caplog) -> None:
    indexer = _debouncing_indexer(fake_scheduler)

    def _boom(result) -> None:
        raise RuntimeError("listener crashed")

    indexer.search_debounced("honda", vehicles, _boom)
    fake_scheduler.advance(0.25)

    assert any(record.getMessage() == "search.debounced_failed" for record in caplog.records)


@pytest.mark.asyncio
async def test_asyncio_scheduler_debounces_on_event_loop(vehicles) -> None:
    indexer = _debouncing_indexer(AsyncioScheduler())
    indexer.build_index(vehicles)
    results = []

    for _ in range(3):
        indexer.search_debounced("civic", vehicles, results.append, delay_seconds=0.01)

    await asyncio.sleep(0.05)

    assert len(results) == 1
    assert [vehicle.id for vehicle in results[0].matches] == ["1"]
