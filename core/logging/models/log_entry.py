"""
log_entry.py

One structured log record: which subsystem (``feature``) saw what
(``event``), for which document or field (``reference_id``) and on whose
behalf (``user_id``, the signed-in e-mail).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

import core.helpers.date_time_helper as dt

COLUMNS: Tuple[str, ...] = (
    "timestamp", "log_level", "user_id", "feature", "event", "reference_id", "message",
)


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: datetime          # UTC
    log_level: str
    feature: str
    event: str
    user_id: Optional[str] = None
    reference_id: Optional[str] = None
    message: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LogEntry":
        ts = row["timestamp"]
        return cls(
            id=row.get("id"),
            timestamp=dt.parse_iso(ts) if isinstance(ts, str) else ts,
            log_level=row.get("log_level") or "INFO",
            user_id=row.get("user_id"),
            feature=row.get("feature") or "",
            event=row.get("event") or "",
            reference_id=row.get("reference_id"),
            message=row.get("message"),
        )

    def to_row(self) -> Tuple[Any, ...]:
        """Values in ``COLUMNS`` order, timestamp as ISO text."""
        return (
            self.timestamp.isoformat(), self.log_level, self.user_id,
            self.feature, self.event, self.reference_id, self.message,
        )

    def summary(self) -> str:
        """One line for status bars, e.g. ``2024-03-14 18:05:00 WARNING DocumentApi/TransportError [7] ...``."""
        head = f"{dt.utc_to_local_str(self.timestamp.isoformat())} {self.log_level} {self.feature}/{self.event}"
        if self.reference_id:
            head += f" [{self.reference_id}]"
        return f"{head} {self.message}" if self.message else head
