"""Tests for the public search and inventory API routes."""

import pytest

from showroom.core.config import SearchSettings, Settings


def _ids(payload: dict) -> list[str]:
    return [vehicle["id"] for vehicle in payload["matches"]]


@pytest.fixture
def client(make_client):
    return make_client()


def test_search_returns_matches_in_inventory_order(client) -> None:
    response = client.get("/v1/search", params={"q": "white"})

    assert response.status_code == 200
    body = response.json()
    assert _ids(body) == ["1", "4"]
    assert body["total"] == 2
    assert body["query"] == "white"
    assert body["from_cache"] is False
    assert body["took_ms"] >= 0


def test_repeated_search_is_served_from_cache(client) -> None:
    client.get("/v1/search", params={"q": "toyota"})

    body = client.get("/v1/search", params={"q": "Toyota"}).json()

    assert body["from_cache"] is True
    assert _ids(body) == ["2"]


def test_max_results_truncates_but_total_does_not(client) -> None:
    body = client.get("/v1/search", params={"q": "automatic", "max_results": 1}).json()

    assert len(body["matches"]) == 1
    assert body["total"] == 3


def test_short_query_returns_empty_result(client) -> None:
    body = client.get("/v1/search", params={"q": "o"}).json()

    assert body["matches"] == []
    assert body["total"] == 0


def test_min_query_length_override(client) -> None:
    body = client.get("/v1/search", params={"q": "o", "min_query_length": 1}).json()

    assert body["total"] > 0


def test_missing_query_is_422(client) -> None:
    assert client.get("/v1/search").status_code == 422


def test_advanced_search_applies_filters(client) -> None:
    response = client.post(
        "/v1/search/advanced",
        json={
            "query": "automatic",
            "filters": {"fuel_types": ["electric", "hybrid"], "price_max": 150000},
        },
    )

    assert response.status_code == 200
    assert _ids(response.json()) == ["2"]


def test_advanced_search_rejects_unknown_filter(client) -> None:
    response = client.post(
        "/v1/search/advanced",
        json={"query": "honda", "filters": {"doors": 4}},
    )

    assert response.status_code == 422


def test_advanced_search_rejects_inverted_range(client) -> None:
    response = client.post(
        "/v1/search/advanced",
        json={"query": "honda", "filters": {"year_min": 2022, "year_max": 2018}},
    )

    assert response.status_code == 422


def test_suggestions(client) -> None:
    body = client.get("/v1/search/suggestions", params={"q": "20", "limit": 2}).json()

    assert body == {"query": "20", "suggestions": ["2019", "2021"]}


def test_search_with_suggestions(client) -> None:
    body = client.get("/v1/search/with-suggestions", params={"q": "mazda"}).json()

    assert _ids(body["results"]) == ["3"]
    assert body["suggestions"] == ["Mazda"]


def test_scan_only_configuration_returns_same_matches(make_client) -> None:
    client = make_client(Settings(search=SearchSettings(enable_index=False, enable_cache=False)))

    body = client.get("/v1/search", params={"q": "white"}).json()

    assert _ids(body) == ["1", "4"]
    assert body["from_cache"] is False


def test_list_vehicles(client) -> None:
    body = client.get("/v1/vehicles").json()

    assert body["total"] == 4
    assert [vehicle["id"] for vehicle in body["vehicles"]] == ["1", "2", "3", "4"]


def test_replace_inventory_requires_api_key(client) -> None:
    response = client.put("/v1/vehicles", json={"vehicles": []})

    assert response.status_code == 403


def test_replace_inventory_rebuilds_index(client, api_key_headers) -> None:
    client.get("/v1/search", params={"q": "honda"})

    response = client.put(
        "/v1/vehicles",
        headers=api_key_headers,
        json={"vehicles": [{"id": "9", "name": "Honda Fit", "brand": "Honda", "model": "Fit"}]},
    )

    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["index_size"] > 0

    body = client.get("/v1/search", params={"q": "honda"}).json()
    assert _ids(body) == ["9"]
    assert body["from_cache"] is False


def test_replace_inventory_refreshes_cached_scan_results(make_client, api_key_headers) -> None:
    client = make_client(Settings(search=SearchSettings(enable_index=False)))
    assert _ids(client.get("/v1/search", params={"q": "civic"}).json()) == ["1"]

    client.put(
        "/v1/vehicles",
        headers=api_key_headers,
        json={"vehicles": [{"id": "9", "name": "Honda Civic Type R", "brand": "Honda"}]},
    )
    body = client.get("/v1/search", params={"q": "civic"}).json()

    assert _ids(body) == ["9"]
    assert body["from_cache"] is False


def test_replace_inventory_rejects_duplicate_ids(client, api_key_headers) -> None:
    response = client.put(
        "/v1/vehicles",
        headers=api_key_headers,
        json={"vehicles": [{"id": "1", "name": "A"}, {"id": "1", "name": "B"}]},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "duplicate_vehicle_id"
