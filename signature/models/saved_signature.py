from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True, slots=True)
class SavedSignature:
    """Vault entry: a named, reusable signature image."""
    id: str
    name: str
    data: str            # image-data string
    created_at: str      # ISO-8601 UTC

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "data": self.data, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SavedSignature":
        return cls(
            id=str(raw["id"]),
            name=str(raw.get("name") or ""),
            data=str(raw.get("data") or ""),
            created_at=str(raw.get("createdAt") or ""),
        )
