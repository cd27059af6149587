"""Key-value store tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from marknav.cache import CorruptStoreError, JsonFileStore, MemoryStore


def test_missing_file_reads_as_empty(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "cache.json")

    assert store.get("key") is None
    assert store.keys() == []


def test_set_get_and_delete(tmp_path: Path) -> None:
    """Values persist across store instances until deleted."""
    path = tmp_path / "nested" / "cache.json"
    JsonFileStore(path).set("alpha", "one")
    JsonFileStore(path).set("beta", "two")

    reopened = JsonFileStore(path)
    assert reopened.get("alpha") == "one"
    assert sorted(reopened.keys()) == ["alpha", "beta"]

    assert reopened.delete("alpha") is True
    assert reopened.delete("alpha") is False
    assert json.loads(path.read_text(encoding="utf-8")) == {"beta": "two"}


def test_write_leaves_no_temporary_files(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "cache.json")

    store.set("key", "value")

    assert [entry.name for entry in tmp_path.iterdir()] == ["cache.json"]


def test_corrupt_file_raises_on_read(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CorruptStoreError):
        JsonFileStore(path).get("key")


def test_corrupt_file_is_replaced_on_write(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    store = JsonFileStore(path)

    store.set("key", "value")

    assert store.get("key") == "value"


def test_non_string_values_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"key": 42}), encoding="utf-8")

    assert JsonFileStore(path).get("key") is None


def test_memory_store() -> None:
    store = MemoryStore()

    store.set("key", "value")

    assert store.get("key") == "value"
    assert store.keys() == ["key"]
    assert store.delete("key") is True
    assert store.get("key") is None
