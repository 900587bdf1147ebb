"""
date_time_helper.py

Helpers for conversion and formatting of date and time values, with UTC for
storage/wire and the local zone for display.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from zoneinfo import ZoneInfo

# Local timezone for display
LOCAL_TZ = ZoneInfo("Asia/Seoul")


def utc_now_iso() -> str:
    """
    Returns the current UTC time as an ISO8601 string (YYYY-MM-DDTHH:MM:SS+00:00).
    Used for logging and local storage.
    """
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO timestamp from the API. Naive values are taken as UTC.
    Returns None for empty or unparsable input.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_to_local_str(utc_iso: str) -> str:
    """
    Formats a UTC ISO8601 timestamp as a human-readable local string.

    :param utc_iso: UTC time as ISO string (from DB/logs)
    :return: String in format "YYYY-MM-DD HH:MM:SS" (local time)
    """
    dt_utc = datetime.fromisoformat(utc_iso)
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    return dt_utc.astimezone(LOCAL_TZ).strftime("%Y-%m-%d %H:%M:%S")


def format_short(moment: datetime) -> str:
    """Short local form used in assignment hints, e.g. '03-14 09:05'."""
    return moment.astimezone(LOCAL_TZ).strftime("%m-%d %H:%M")
