# signature/logic/signature_vault.py
from __future__ import annotations

import json
import uuid
from typing import Dict, List, Optional

from core.helpers.date_time_helper import utc_now_iso
from core.logging.logic.logger import logger
from core.storage.kv_store import KeyValueStore
from ..models.saved_signature import SavedSignature

VAULT_KEY = "savedSignatures"
_FEATURE = "SignatureVault"


class SignatureVault:
    """
    Client-local collection of reusable signatures.

    Loaded once when the vault is opened and written back in full on every
    add/remove, as a JSON list under a fixed key. Unreadable contents count
    as an empty vault.
    """

    def __init__(self, store: KeyValueStore, *, key: str = VAULT_KEY) -> None:
        self._store = store
        self._key = key
        self._entries: Dict[str, SavedSignature] = {}
        self.reload()

    # -------- Read --------------------------------------------------------- #
    def reload(self) -> None:
        self._entries = {}
        raw = self._store.get(self._key)
        if not raw:
            return
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("vault is not a list")
            entries = [SavedSignature.from_dict(item) for item in items]
        except (ValueError, TypeError, KeyError) as exc:
            logger.log(_FEATURE, "VaultCorrupt", level="WARNING", message=str(exc))
            return
        self._entries = {e.id: e for e in entries}

    def list(self) -> List[SavedSignature]:
        return list(self._entries.values())

    def get(self, signature_id: str) -> Optional[SavedSignature]:
        return self._entries.get(signature_id)

    def __len__(self) -> int:
        return len(self._entries)

    # -------- Write -------------------------------------------------------- #
    def add(self, name: str, data: str) -> SavedSignature:
        entry = SavedSignature(
            id=uuid.uuid4().hex,
            name=name.strip() or "Signature",
            data=data,
            created_at=utc_now_iso(),
        )
        self._entries[entry.id] = entry
        self._persist()
        logger.log(_FEATURE, "Saved", reference_id=entry.id)
        return entry

    def remove(self, signature_id: str) -> bool:
        if self._entries.pop(signature_id, None) is None:
            return False
        self._persist()
        logger.log(_FEATURE, "Deleted", reference_id=signature_id)
        return True

    def _persist(self) -> None:
        payload = [e.to_dict() for e in self._entries.values()]
        self._store.set(self._key, json.dumps(payload, ensure_ascii=False))
