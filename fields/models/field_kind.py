from __future__ import annotations
from enum import Enum


class FieldKind(str, Enum):
    """Wire value of ``CoordinateField.type``."""
    PLAIN = "field"
    TABLE = "table"
    EDITOR_SIGNATURE = "editor_signature"
    SIGNER_SIGNATURE = "signer_signature"
    REVIEWER_SIGNATURE = "reviewer_signature"   # legacy name of SIGNER_SIGNATURE

    @property
    def is_signature(self) -> bool:
        return self in _SIGNATURE_KINDS

    @property
    def is_signer_slot(self) -> bool:
        """Slots filled by an assigned signer (as opposed to the editor)."""
        return self in (FieldKind.SIGNER_SIGNATURE, FieldKind.REVIEWER_SIGNATURE)

    @classmethod
    def parse(cls, raw: object) -> "FieldKind":
        """Unknown or missing types are plain fields."""
        text = str(raw or "").strip().lower()
        for kind in cls:
            if kind.value == text:
                return kind
        return cls.PLAIN


_SIGNATURE_KINDS = frozenset({
    FieldKind.EDITOR_SIGNATURE,
    FieldKind.SIGNER_SIGNATURE,
    FieldKind.REVIEWER_SIGNATURE,
})
