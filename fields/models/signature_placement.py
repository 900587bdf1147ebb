from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .geometry import FieldGeometry


@dataclass(frozen=True, slots=True)
class SignaturePlacement:
    """
    Placement-only record assigning a page region to one reviewer/signer.

    Buffered client-side until "placement complete"; once persisted into
    ``Document.data.signatureFields`` it is read-only.
    """
    id: str
    geometry: FieldGeometry
    assignee_email: str
    assignee_name: Optional[str] = None
    signature_data: str = ""
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def page(self) -> int:
        return self.geometry.page

    @property
    def is_signed(self) -> bool:
        return bool(self.signature_data and self.signature_data.strip())

    @property
    def display_name(self) -> str:
        return self.assignee_name or self.assignee_email
