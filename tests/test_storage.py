"""Tests for the persistent store implementations."""
import pytest

from cache.storage import DiskStore, MemoryStore, StorageError


def test_memory_store_basic_operations():
    store = MemoryStore()
    store.set("a", "1")
    store.set("b", "2")
    store.set("a", "3")

    assert store.get("a") == "3"
    assert store.get("missing") is None
    assert sorted(store.keys()) == ["a", "b"]

    store.remove("a")
    store.remove("never-there")
    assert store.keys() == ["b"]


def test_memory_store_quota_rejects_oversized_write():
    store = MemoryStore(quota_chars=10)
    store.set("k", "12345")  # 6 chars

    with pytest.raises(StorageError):
        store.set("j", "123456")

    # Overwriting the same key only counts the new size
    store.set("k", "123456789")
    assert store.get("k") == "123456789"


def test_memory_store_unavailable_fails_every_call():
    store = MemoryStore(available=False)
    for call in (lambda: store.get("k"), lambda: store.set("k", "v"), store.keys, lambda: store.remove("k")):
        with pytest.raises(StorageError):
            call()


def test_disk_store_round_trip(tmp_path):
    store = DiskStore(tmp_path / "store")
    assert store.keys() == []
    assert store.get("portfolio_v1_data/projects.json") is None

    store.set("portfolio_v1_data/projects.json", '{"value": [1]}')
    store.set("portfolio_v1_lab-notes/ñote.md", "texto")

    assert store.get("portfolio_v1_data/projects.json") == '{"value": [1]}'
    assert sorted(store.keys()) == ["portfolio_v1_data/projects.json", "portfolio_v1_lab-notes/ñote.md"]

    store.remove("portfolio_v1_data/projects.json")
    store.remove("portfolio_v1_data/projects.json")
    assert store.keys() == ["portfolio_v1_lab-notes/ñote.md"]


def test_disk_store_survives_new_instance(tmp_path):
    DiskStore(tmp_path).set("k", "v")
    assert DiskStore(tmp_path).get("k") == "v"


def test_disk_store_corrupt_file(tmp_path):
    store = DiskStore(tmp_path)
    store.set("k", "v")
    (path,) = tmp_path.glob("*.json")
    path.write_text("{not json")

    with pytest.raises(StorageError):
        store.get("k")
    assert store.keys() == []


def test_disk_store_keys_skip_non_string_key(tmp_path):
    store = DiskStore(tmp_path)
    store.set("portfolio_v1_k", "v")
    (tmp_path / "tampered.json").write_text('{"key": null, "text": "x"}')
    (tmp_path / "numeric.json").write_text('{"key": 7, "text": "x"}')

    assert store.keys() == ["portfolio_v1_k"]


def test_disk_store_skips_non_utf8_file(tmp_path):
    store = DiskStore(tmp_path)
    store.set("portfolio_v1_k", "v")
    (tmp_path / "aaaa.json").write_bytes(b"\xff\xfe")

    assert store.keys() == ["portfolio_v1_k"]


def test_disk_store_get_non_utf8_file_is_storage_error(tmp_path):
    store = DiskStore(tmp_path)
    store.set("k", "v")
    (path,) = tmp_path.glob("*.json")
    path.write_bytes(b"\xff\xfe")

    with pytest.raises(StorageError):
        store.get("k")
