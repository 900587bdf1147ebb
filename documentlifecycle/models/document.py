from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from fields.models.coordinate_field import CoordinateField, SignatureSlotField
from fields.models.signature_placement import SignaturePlacement
from .document_status import DocumentStatus
from .task import Task
from .task_role import TaskRole


@dataclass(slots=True)
class DocumentData:
    """
    The ``data`` aggregate of a document.

    - coordinate_fields : ordered; list order is z-order
    - signature_fields  : persisted signer placements (read-only client-side)
    - signatures        : participant identifier -> image-data string
    - extras            : keys of ``data`` this client does not interpret
    """
    coordinate_fields: List[CoordinateField] = field(default_factory=list)
    signature_fields: List[SignaturePlacement] = field(default_factory=list)
    signatures: Dict[str, str] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    def signature_slots(self) -> List[SignatureSlotField]:
        return [f for f in self.coordinate_fields if isinstance(f, SignatureSlotField)]


@dataclass(slots=True)
class StatusLog:
    status: DocumentStatus
    timestamp: Optional[datetime] = None
    changed_by_email: Optional[str] = None
    changed_by_name: Optional[str] = None
    comment: Optional[str] = None


@dataclass(slots=True)
class Document:
    """
    Client-side cached copy of a document.

    The persistence API owns it; any copy may be stale and is replaced by the
    re-fetched document after every action.
    """

    # Identity
    id: int
    status: DocumentStatus
    data: DocumentData = field(default_factory=DocumentData)
    tasks: List[Task] = field(default_factory=list)

    # Descriptive (carried through from the wire when present)
    title: str = ""
    template_id: Optional[int] = None
    template: Dict[str, Any] = field(default_factory=dict)
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status_logs: List[StatusLog] = field(default_factory=list)

    # Convenience ----------------------------------------------------------
    def tasks_for(self, role: TaskRole) -> List[Task]:
        return [t for t in self.tasks if t.role == role]

    def task_of(self, role: TaskRole, email: Optional[str]) -> Optional[Task]:
        for t in self.tasks:
            if t.role == role and t.is_assigned_to(email):
                return t
        return None

    def was_rejected_before(self) -> bool:
        return any(log.status == DocumentStatus.REJECTED for log in self.status_logs)

    def last_reject_comment(self) -> Optional[str]:
        for log in reversed(self.status_logs):
            if log.status == DocumentStatus.REJECTED:
                return log.comment
        return None
