from __future__ import annotations

import logging
import os
import sqlite3
import time
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
PROGRESS_DB_ENV = "MINDGAMES_PROGRESS_DB"


class KeyValueStore(Protocol):
    """Durable byte store used by the progression ledger.

    ``load`` returns None for a key that was never saved.
    """

    def load(self, key: str) -> bytes | None: ...
    def save(self, key: str, data: bytes) -> None: ...


def default_db_path() -> Path:
    explicit = os.environ.get(PROGRESS_DB_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".mindgames_progress.sqlite3"


class MemoryStore:
    """In-process store; nothing survives the process."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> bytes | None:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def keys(self) -> list[str]:
        return sorted(self._data)


def open_db(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    _migrate(conn)
    return conn


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


class SqliteStore:
    """Key-value store in a single sqlite file.

    Each call opens its own connection and commits before returning, so a
    ``load`` after a ``save`` always sees the saved bytes.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else default_db_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, key: str) -> bytes | None:
        if not self._path.exists():
            return None
        conn = open_db(self._path)
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (str(key),)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return bytes(row[0])

    def save(self, key: str, data: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = open_db(self._path)
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at_utc) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (str(key), sqlite3.Binary(bytes(data)), _utc_now_iso()),
                )
        finally:
            conn.close()
        logger.debug("saved %d bytes under %r in %s", len(data), key, self._path)


class JsonFileStore:
    """One file per key inside ``directory``; writes go through a temp file."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    def _file_for(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in str(key))
        if safe == "":
            raise ValueError("key must contain at least one usable character")
        return self._dir / f"{safe}.json"

    def load(self, key: str) -> bytes | None:
        path = self._file_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def save(self, key: str, data: bytes) -> None:
        path = self._file_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(f"{path.suffix}.tmp")
        tmp_path.write_bytes(bytes(data))
        tmp_path.replace(path)
