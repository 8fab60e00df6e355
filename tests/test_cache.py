import json
import os
import stat
import tempfile
from pathlib import Path

import pytest

from rirallocations.cache import MAX_AGE, CacheEntry, CacheStore, FileCacheStore
from rirallocations.errors import CacheCorrupt, CacheWriteError

INDEX = {
    "ipv4": {"AU": ["1.0.0.0/24", "1.0.4.0/22"]},
    "ipv6": {"JP": ["2001:200::/35"]},
}


@pytest.fixture
def store(tmp_path: Path) -> FileCacheStore:
    return FileCacheStore(tmp_path)


def test_path_for_registry(store: FileCacheStore, tmp_path: Path) -> None:
    assert store.path_for("ripe-ncc") == tmp_path / ".rir_allocations_ripe-ncc.json"


def test_default_cache_dir_is_tempdir() -> None:
    assert FileCacheStore().cache_dir == Path(tempfile.gettempdir())


def test_load_missing_returns_none(store: FileCacheStore) -> None:
    assert store.load("apnic") is None
    assert store.age("apnic") is None


def test_save_then_load(store: FileCacheStore) -> None:
    path = store.save("apnic", INDEX)
    entry = store.load("apnic")

    assert isinstance(entry, CacheEntry)
    assert entry.index == INDEX
    assert entry.path == path
    assert entry.is_fresh()


def test_save_is_owner_only(store: FileCacheStore) -> None:
    path = store.save("apnic", INDEX)
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_save_leaves_no_temp_files(store: FileCacheStore, tmp_path: Path) -> None:
    store.save("apnic", INDEX)
    store.save("apnic", {"ipv4": {}, "ipv6": {}})

    assert [p.name for p in tmp_path.iterdir()] == [".rir_allocations_apnic.json"]
    assert store.load("apnic").index == {"ipv4": {}, "ipv6": {}}


def test_save_creates_cache_dir(tmp_path: Path) -> None:
    store = FileCacheStore(tmp_path / "nested" / "cache")
    store.save("arin", INDEX)
    assert store.load("arin").index == INDEX


def test_save_failure_raises_cache_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    with pytest.raises(CacheWriteError):
        FileCacheStore(blocker).save("apnic", INDEX)


@pytest.mark.parametrize(
    "contents",
    [
        "{not json",
        json.dumps(["ipv4", "ipv6"]),
        json.dumps({"ipv4": {}}),
        json.dumps({"ipv4": {}, "ipv6": {"JP": "2001:200::/35"}}),
        json.dumps({"ipv4": [], "ipv6": {}}),
        json.dumps({"ipv4": {"AU": [1]}, "ipv6": {}}),
        json.dumps({"ipv4": {"AU": ["garbage"]}, "ipv6": {}}),
        json.dumps({"ipv4": {"AU": ["1.0.0.0/33"]}, "ipv6": {}}),
        json.dumps({"ipv4": {}, "ipv6": {"JP": ["1.0.0.0/24"]}}),
    ],
)
def test_load_corrupt_entry(store: FileCacheStore, contents: str) -> None:
    store.path_for("apnic").write_text(contents, encoding="utf-8")

    with pytest.raises(CacheCorrupt):
        store.load("apnic")


def test_load_reports_age_from_mtime(tmp_path: Path) -> None:
    now = 1_700_000_000.0
    store = FileCacheStore(tmp_path, clock=lambda: now)
    path = store.save("lacnic", INDEX)

    os.utime(path, (now - MAX_AGE, now - MAX_AGE))
    entry = store.load("lacnic")
    assert entry.age == MAX_AGE
    assert entry.is_fresh()

    os.utime(path, (now - MAX_AGE - 1, now - MAX_AGE - 1))
    entry = store.load("lacnic")
    assert entry.age == MAX_AGE + 1
    assert not entry.is_fresh()


def test_is_fresh_custom_max_age() -> None:
    entry = CacheEntry(index=INDEX, age=120, path=None)
    assert entry.is_fresh(120)
    assert not entry.is_fresh(60)


def test_cache_store_interface() -> None:
    store = CacheStore()
    with pytest.raises(NotImplementedError):
        store.load("apnic")
    with pytest.raises(NotImplementedError):
        store.save("apnic", INDEX)
