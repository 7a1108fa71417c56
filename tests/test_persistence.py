from __future__ import annotations

from pathlib import Path

import pytest

from mindgames.persistence import (
    PROGRESS_DB_ENV,
    SCHEMA_VERSION,
    JsonFileStore,
    MemoryStore,
    SqliteStore,
    default_db_path,
    open_db,
)


def test_memory_store_round_trip() -> None:
    store = MemoryStore()
    assert store.load("missing") is None
    store.save("a", b"one")
    store.save("a", b"two")
    assert store.load("a") == b"two"
    assert store.keys() == ["a"]


def test_sqlite_store_missing_file_loads_none(tmp_path: Path) -> None:
    store = SqliteStore(tmp_path / "progress.sqlite3")
    assert store.load("animal-kingdom-progress") is None
    assert not store.path.exists()


def test_sqlite_store_save_overwrite_and_reopen(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "progress.sqlite3"
    store = SqliteStore(path)
    store.save("memory-matrix-progress", b'{"v": 1}')
    store.save("memory-matrix-progress", b'{"v": 2}')
    store.save("animal-kingdom-progress", b"{}")

    reopened = SqliteStore(path)
    assert reopened.load("memory-matrix-progress") == b'{"v": 2}'
    assert reopened.load("animal-kingdom-progress") == b"{}"
    assert reopened.load("other") is None

    conn = open_db(path)
    try:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0]
        rows = conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0]
    finally:
        conn.close()
    assert ver == SCHEMA_VERSION
    assert rows == 2


def test_default_db_path_honours_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "custom.sqlite3"
    monkeypatch.setenv(PROGRESS_DB_ENV, str(target))
    assert default_db_path() == target
    assert SqliteStore().path == target

    monkeypatch.delenv(PROGRESS_DB_ENV)
    assert default_db_path().name == ".mindgames_progress.sqlite3"


def test_json_file_store_writes_one_file_per_key(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "saves")
    assert store.load("animal-kingdom-progress") is None

    store.save("animal-kingdom-progress", b'{"levels": {}}')
    assert (tmp_path / "saves" / "animal-kingdom-progress.json").read_bytes() == b'{"levels": {}}'
    assert store.load("animal-kingdom-progress") == b'{"levels": {}}'
    assert not list((tmp_path / "saves").glob("*.tmp"))


def test_json_file_store_sanitizes_keys(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.save("../escape", b"x")
    assert (tmp_path / "___escape.json").exists()
    with pytest.raises(ValueError):
        store.save("", b"x")
