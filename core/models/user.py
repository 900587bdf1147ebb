"""
user.py

The signed-in user as the client sees it. Identity is the e-mail address
(tasks are assigned by e-mail); the bearer token authenticates API calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class SessionUser:
    email: str
    name: str = ""
    token: str = field(default="", repr=False)
    id: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def is_same(self, email: Optional[str]) -> bool:
        """E-mail comparison ignoring case and surrounding blanks."""
        return bool(email) and self.email.strip().lower() == email.strip().lower()
