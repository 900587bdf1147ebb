# core/common/app_context.py
"""
Global runtime context: signed-in user and shared local store.

Holds the signed-in user and the shared client-local key-value store.
Session changes are broadcast to subscribers as UserSessionEvent;
a 401 from the API ends the session with reason "session_expired".
"""

from __future__ import annotations

import weakref
from threading import RLock
from typing import Callable, List, Optional

from core.config.config_service import config_service
from core.logging.logic.logger import logger
from core.models.user import SessionUser
from core.storage.kv_store import KeyValueStore, SqliteKeyValueStore
from core.common.session_events import REASON_LOGIN, REASON_LOGOUT, REASON_SESSION_EXPIRED, UserSessionEvent

SessionCallback = Callable[[UserSessionEvent], None]


class AppContext:
    """Central runtime context (no GUI state)."""

    current_user: Optional[SessionUser] = None

    _lock = RLock()
    _observers: List[object] = []     # weak references to callbacks
    _store: Optional[KeyValueStore] = None

    # ---------- Session -------------------------------------------------
    @classmethod
    def get_current_user(cls) -> Optional[SessionUser]:
        return cls.current_user

    @classmethod
    def set_current_user(cls, user: SessionUser, *, reason: str = REASON_LOGIN) -> None:
        with cls._lock:
            old = cls.current_user
            cls.current_user = user
        kind = "login" if old is None else "user_changed"
        logger.log("Session", kind, user_id=user.email, message=reason)
        cls._emit(UserSessionEvent(kind, old, user, reason))

    @classmethod
    def clear_current_user(cls, *, reason: str = REASON_LOGOUT) -> None:
        with cls._lock:
            old = cls.current_user
            cls.current_user = None
        if old is None:
            return
        logger.log("Session", "logout", user_id=old.email, message=reason)
        cls._emit(UserSessionEvent("logout", old, None, reason))

    @classmethod
    def expire_session(cls) -> None:
        """Sign out after the API rejected the credential (401)."""
        cls.clear_current_user(reason=REASON_SESSION_EXPIRED)

    # ---------- Observers ----------------------------------------------
    @classmethod
    def subscribe_user_session(cls, callback: SessionCallback) -> None:
        ref = weakref.WeakMethod(callback) if hasattr(callback, "__self__") else weakref.ref(callback)
        with cls._lock:
            cls._observers.append(ref)

    @classmethod
    def unsubscribe_user_session(cls, callback: SessionCallback) -> None:
        with cls._lock:
            cls._observers = [r for r in cls._observers if r() is not None and r() != callback]

    @classmethod
    def _emit(cls, event: UserSessionEvent) -> None:
        with cls._lock:
            live = [r() for r in cls._observers]
            cls._observers = [r for r in cls._observers if r() is not None]
        for cb in live:
            if cb is not None:
                cb(event)

    # ---------- Shared services ----------------------------------------
    @classmethod
    def store(cls) -> KeyValueStore:
        """Client-local key-value store (SQLite file from ``[Storage] local_db``)."""
        with cls._lock:
            if cls._store is None:
                store: KeyValueStore = SqliteKeyValueStore(config_service.storage.local_db)
                if config_service.storage.encrypt_vault:
                    from signature.logic.encryption import EncryptedKeyValueStore  # lazy import
                    store = EncryptedKeyValueStore(store)
                cls._store = store
            return cls._store

    @classmethod
    def use_store(cls, store: KeyValueStore) -> None:
        with cls._lock:
            cls._store = store
