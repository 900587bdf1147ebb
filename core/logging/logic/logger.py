"""
core/logging/logic/logger.py
============================

Process-wide structured logger backed by SQLite.

Entries are addressed by ``feature`` (the subsystem, e.g. "FieldPlacement")
and ``event`` (what happened, e.g. "CompleteFailed"); ``reference_id`` ties an
entry to a document or field id. Recoverable degradations (corrupt drafts,
camera fallback, stale results) and every document-mutating action end up
here.

The most recent entries are also kept in memory (``entries``) so the window
can show them without a query. One connection is shared between threads and
guarded by a lock.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple

from core.config.config_service import config_service
from core.logging.models.log_entry import COLUMNS, LogEntry

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
MEMORY_LIMIT = 500

_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    log_level TEXT NOT NULL DEFAULT 'INFO',
    user_id TEXT,
    feature TEXT NOT NULL,
    event TEXT NOT NULL,
    reference_id TEXT,
    message TEXT
)
"""
_INSERT = f"INSERT INTO logs ({', '.join(COLUMNS)}) VALUES ({', '.join('?' for _ in COLUMNS)})"


def _level_no(level: str, default: int = 20) -> int:
    return LEVELS.get(level.upper(), default)


def _where(**criteria: Any) -> Tuple[str, List[Any]]:
    """Equality filter over the given columns; ``None`` values are skipped."""
    parts, params = [], []
    for column, value in criteria.items():
        if value is not None:
            parts.append(f"{column} = ?")
            params.append(str(value))
    return (" WHERE " + " AND ".join(parts)) if parts else "", params


class Logger:
    """Singleton; import the module-level ``logger`` instead of instantiating."""

    _instance: "Logger | None" = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "Logger":
        with cls._instance_lock:
            if cls._instance is None:
                inst = super().__new__(cls)
                inst._ready = False
                cls._instance = inst
        return cls._instance

    def __init__(self) -> None:
        if self._ready:
            return
        self._ready = True
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        self.db_path: Path = Path(config_service.logging.db_path)
        self.min_level: int = _level_no(config_service.logging.level)
        self.entries: List[LogEntry] = []
        self._open()

    # -------- Setup -------------------------------------------------------- #
    def configure(self, *, db_path: Path | str | None = None, level: str | None = None) -> None:
        """Switch database (``":memory:"`` in tests) and/or threshold."""
        if db_path is not None:
            self.close()
            self.db_path = Path(db_path)
            self._open()
        if level is not None:
            self.min_level = _level_no(level, self.min_level)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _open(self) -> None:
        with self._lock:
            in_memory = str(self.db_path) == ":memory:"
            if not in_memory:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute(_SCHEMA)
            self._conn.commit()

    # -------- Writing ------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[str] = None,
        level: str = "INFO",
        reference_id: Any = None,
        message: Optional[str] = None,
    ) -> None:
        """Record one entry unless ``level`` is below the configured threshold."""
        level = level.upper()
        if _level_no(level) < self.min_level:
            return
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            log_level=level,
            feature=feature,
            event=event,
            user_id=user_id,
            reference_id=None if reference_id is None else str(reference_id),
            message=message,
        )
        with self._lock:
            self.entries.append(entry)
            del self.entries[:-MEMORY_LIMIT]
            if self._conn is not None:
                self._conn.execute(_INSERT, entry.to_row())
                self._conn.commit()

    def clear_logs(self) -> None:
        with self._lock:
            self.entries.clear()
            if self._conn is not None:
                self._conn.execute("DELETE FROM logs")
                self._conn.commit()

    # -------- Reading ------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        """Newest first."""
        return self.query_logs(limit=limit)

    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Any = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        clause, params = _where(
            feature=feature, event=event, reference_id=reference_id,
            log_level=level.upper() if level else None,
        )
        sql = f"SELECT * FROM logs{clause} ORDER BY id DESC LIMIT ?"
        with self._lock:
            if self._conn is None:
                return []
            rows = self._conn.execute(sql, [*params, limit]).fetchall()
        return [LogEntry.from_row(dict(row)) for row in rows]


logger: Logger = Logger()
