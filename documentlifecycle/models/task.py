from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .task_role import TaskRole


@dataclass(slots=True)
class Task:
    """
    Role assignment of one user on one document.

    ``can_assign_reviewer`` is only meaningful for EDITOR tasks.
    """
    role: TaskRole
    assigned_user_email: str
    assigned_user_name: str = ""
    can_assign_reviewer: bool = False
    created_at: Optional[datetime] = None
    id: Optional[int] = None
    status: Optional[str] = None
    last_viewed_at: Optional[datetime] = None
    is_new: bool = False
    extras: Dict[str, Any] = field(default_factory=dict)

    def is_assigned_to(self, email: Optional[str]) -> bool:
        return bool(email) and _norm(self.assigned_user_email) == _norm(email)


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()
