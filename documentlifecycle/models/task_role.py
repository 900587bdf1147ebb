from __future__ import annotations
from enum import Enum
from typing import Optional


class TaskRole(str, Enum):
    """Per-document roles; a user holding several roles has one Task each."""
    CREATOR = "CREATOR"
    EDITOR = "EDITOR"
    REVIEWER = "REVIEWER"
    SIGNER = "SIGNER"

    @classmethod
    def parse(cls, raw: object) -> Optional["TaskRole"]:
        try:
            return cls(str(raw or "").strip().upper())
        except ValueError:
            return None
