from __future__ import annotations

import pytest

from fetchable_image.storage import CacheStore


def _store(tmp_path) -> CacheStore:
    return CacheStore(tmp_path / "caches", tmp_path / "documents")


def test_resolve_joins_selected_root_without_io(tmp_path) -> None:
    store = _store(tmp_path)

    assert store.resolve("abc") == tmp_path / "caches" / "abc"
    assert store.resolve("abc", store_in_caches=False) == tmp_path / "documents" / "abc"
    assert not (tmp_path / "caches").exists()
    assert not (tmp_path / "documents").exists()


def test_resolve_rejects_empty_name(tmp_path) -> None:
    with pytest.raises(ValueError):
        _store(tmp_path).resolve("")


def test_write_read_overwrite_and_delete(tmp_path) -> None:
    store = _store(tmp_path)
    path = store.resolve("image-key")

    assert store.exists(path) is False
    store.write(path, b"first")
    assert store.exists(path) is True
    assert store.read(path) == b"first"

    store.write(path, b"second")
    assert store.read(path) == b"second"

    store.delete(path)
    assert store.exists(path) is False


def test_exists_ignores_directories(tmp_path) -> None:
    store = _store(tmp_path)
    path = store.resolve("folder")
    path.mkdir(parents=True)

    assert store.exists(path) is False


def test_read_and_delete_missing_entry_raise(tmp_path) -> None:
    store = _store(tmp_path)
    path = store.resolve("missing")

    with pytest.raises(FileNotFoundError):
        store.read(path)
    with pytest.raises(FileNotFoundError):
        store.delete(path)


def test_exists_is_false_below_a_regular_file(tmp_path) -> None:
    store = _store(tmp_path)
    blocker = store.resolve("blocker")
    store.write(blocker, b"x")

    assert store.exists(blocker / "child") is False


def test_exists_raises_for_too_long_name(tmp_path) -> None:
    store = _store(tmp_path)
    store.write(store.resolve("seed"), b"x")

    with pytest.raises(OSError):
        store.exists(store.resolve("a" * 300))
