"""Client-local key-value persistence (string values, localStorage semantics)."""
from .kv_store import KeyValueStore, InMemoryKeyValueStore, SqliteKeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "SqliteKeyValueStore"]
