# signature/logic/encryption.py
from __future__ import annotations

import json
from typing import Iterator, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from core.logging.logic.logger import logger
from core.storage.kv_store import KeyValueStore

_KEY_FIELD = "__fernet_key"
_RING_FIELD = "__fernet_key_ring"
# Version byte 0x80 plus the high timestamp bytes, base64url encoded
_TOKEN_PREFIX = "gAAAAA"
_FEATURE = "SignatureVault"


def _load_keyring(store: KeyValueStore) -> List[Fernet]:
    """
    Create a list of Fernet instances:
    - first entry is the current key (used for ENCRYPT),
    - remaining entries are legacy keys (used only for DECRYPT).
    Keys are stored as base64 strings (Fernet.generate_key()) in the store.
    """
    cur_key_str = store.get(_KEY_FIELD)
    ring_raw = store.get(_RING_FIELD)

    try:
        ring_list = json.loads(ring_raw) if ring_raw else []
    except ValueError:
        ring_list = []
    if not isinstance(ring_list, list):
        ring_list = []

    # Create key if missing (one-time)
    if not cur_key_str:
        cur_key_str = Fernet.generate_key().decode("ascii")
        store.set(_KEY_FIELD, cur_key_str)
        store.set(_RING_FIELD, "[]")

    ferns: List[Fernet] = [Fernet(cur_key_str.encode("ascii"))]
    for k in ring_list:
        try:
            ferns.append(Fernet(str(k).encode("ascii")))
        except ValueError:
            # ignore malformed legacy entries
            continue
    return ferns


def rotate_key(store: KeyValueStore) -> None:
    """Make a fresh key current; the old one stays usable for decryption."""
    ferns_raw = store.get(_KEY_FIELD)
    ring_raw = store.get(_RING_FIELD)
    try:
        ring = json.loads(ring_raw) if ring_raw else []
    except ValueError:
        ring = []
    if not isinstance(ring, list):
        ring = []
    if ferns_raw:
        ring.insert(0, ferns_raw)
    store.set(_KEY_FIELD, Fernet.generate_key().decode("ascii"))
    store.set(_RING_FIELD, json.dumps(ring))


class EncryptedKeyValueStore(KeyValueStore):
    """
    Wraps a store and encrypts values at rest with the Fernet keyring.

    A Fernet token that no key in the ring opens reads as missing. Anything
    else is legacy plaintext written before encryption was enabled and is
    returned as stored.
    """

    def __init__(self, inner: KeyValueStore, *, key_store: Optional[KeyValueStore] = None) -> None:
        self._inner = inner
        self._keys = key_store or inner

    def get(self, key: str) -> Optional[str]:
        token = self._inner.get(key)
        if token is None:
            return None
        if token.isascii():
            for f in _load_keyring(self._keys):
                try:
                    return f.decrypt(token.encode("ascii")).decode("utf-8")
                except (InvalidToken, UnicodeError):
                    continue
            if token.startswith(_TOKEN_PREFIX):
                logger.log(_FEATURE, "InvalidToken", level="WARNING", reference_id=key,
                           message="No key in the ring decrypts this value; treating it as missing")
                return None
        logger.log(_FEATURE, "PlaintextValue", level="WARNING", reference_id=key,
                   message="Value is not encrypted; returning it as stored")
        return token

    def set(self, key: str, value: str) -> None:
        token = _load_keyring(self._keys)[0].encrypt(value.encode("utf-8")).decode("ascii")
        self._inner.set(key, token)

    def remove(self, key: str) -> None:
        self._inner.remove(key)

    def keys(self) -> Iterator[str]:
        hidden = {_KEY_FIELD, _RING_FIELD}
        return iter([k for k in self._inner.keys() if k not in hidden])
