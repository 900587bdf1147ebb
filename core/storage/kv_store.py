"""
core/storage/kv_store.py
========================

Small key-value persistence interface for client-local state.

Values are plain strings (callers serialize, usually JSON), mirroring the
browser-local storage the signing client was modelled on. Two backends:

- InMemoryKeyValueStore  – process-local, used by tests and ephemeral sessions
- SqliteKeyValueStore    – durable, one row per key
"""
from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, Iterator, Optional


class KeyValueStore(ABC):
    """String-to-string persistence; absent keys return None."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; deleting an absent key is a no-op."""
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> Iterator[str]:
        raise NotImplementedError

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class SqliteKeyValueStore(KeyValueStore):
    """Durable store; a single shared connection guarded by a lock."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        self._lock = RLock()
        self._conn: Optional[sqlite3.Connection] = None
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if str(self._db_path) != ":memory:":
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    # ------------------------- public API ---------------------------- #
    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._connect().execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            conn = self._connect()
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, value),
                )

    def remove(self, key: str) -> None:
        with self._lock:
            conn = self._connect()
            with conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> Iterator[str]:
        with self._lock:
            rows = self._connect().execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return iter([r["key"] for r in rows])

    # ------------------------- schema -------------------------------- #
    def _ensure_schema(self) -> None:
        with self._lock:
            conn = self._connect()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
