"""
Session change notifications broadcast by AppContext.

Windows subscribe to close themselves when the signed-in user goes away,
most notably when the API answers 401 and the session ends with
``REASON_SESSION_EXPIRED``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

from core.models.user import SessionUser

SessionEventType = Literal["login", "logout", "user_changed"]

REASON_LOGIN = "login"
REASON_LOGOUT = "logout"
REASON_SESSION_EXPIRED = "session_expired"


@dataclass(frozen=True, slots=True)
class UserSessionEvent:
    type: SessionEventType
    old_user: Optional[SessionUser]
    new_user: Optional[SessionUser]
    reason: str = ""
    ts_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expired(self) -> bool:
        """The user was signed out because the credential stopped working."""
        return self.type == "logout" and self.reason == REASON_SESSION_EXPIRED
