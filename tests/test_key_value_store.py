"""Unit tests for the in-memory key-value store."""

import pytest

from showroom.adapters.storage.in_memory import InMemoryKeyValueStore


def test_set_get_remove() -> None:
    store = InMemoryKeyValueStore()
    store.set("a", "1")

    assert store.get("a") == "1"
    store.remove("a")
    assert store.get("a") is None
    # removing an absent key is a no-op
    store.remove("a")


def test_keys_is_a_snapshot() -> None:
    store = InMemoryKeyValueStore()
    store.set("a", "1")
    store.set("b", "2")

    keys = store.keys()
    store.remove("a")

    assert sorted(keys) == ["a", "b"]
    assert len(store) == 1


def test_size_of_counts_utf8_bytes() -> None:
    store = InMemoryKeyValueStore()
    store.set("plain", "abc")
    store.set("accent", "é")

    assert store.size_of("plain") == 3
    assert store.size_of("accent") == 2
    assert store.size_of("missing") == 0


def test_rejects_non_string_values() -> None:
    store = InMemoryKeyValueStore()

    with pytest.raises(TypeError):
        store.set("a", 1)  # type: ignore[arg-type]
