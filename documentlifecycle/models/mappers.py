from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from core.helpers.date_time_helper import parse_iso
from fields.logic.serialization import (
    fields_from_wire,
    fields_to_wire,
    placements_from_wire,
    placements_to_wire,
)
from .document import Document, DocumentData, StatusLog
from .document_status import DocumentStatus
from .task import Task
from .task_role import TaskRole

_DATA_KEYS = {"coordinateFields", "signatureFields", "signatures"}
_TASK_KEYS = {
    "id", "role", "assignedUserEmail", "assignedUserName", "canAssignReviewer",
    "createdAt", "status", "lastViewedAt", "isNew",
}


def _int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def task_from_wire(raw: Mapping[str, Any]) -> Optional[Task]:
    role = TaskRole.parse(raw.get("role"))
    if role is None:
        return None
    return Task(
        role=role,
        assigned_user_email=str(raw.get("assignedUserEmail") or ""),
        assigned_user_name=str(raw.get("assignedUserName") or ""),
        can_assign_reviewer=bool(raw.get("canAssignReviewer", False)),
        created_at=parse_iso(raw.get("createdAt")),
        id=_int(raw.get("id")),
        status=raw.get("status"),
        last_viewed_at=parse_iso(raw.get("lastViewedAt")),
        is_new=bool(raw.get("isNew", False)),
        extras={k: v for k, v in raw.items() if k not in _TASK_KEYS},
    )


def data_from_wire(raw: Any) -> DocumentData:
    if not isinstance(raw, Mapping):
        return DocumentData()
    signatures = raw.get("signatures")
    return DocumentData(
        coordinate_fields=fields_from_wire(raw.get("coordinateFields")),
        signature_fields=placements_from_wire(raw.get("signatureFields")),
        signatures={str(k): str(v) for k, v in signatures.items()} if isinstance(signatures, Mapping) else {},
        extras={k: v for k, v in raw.items() if k not in _DATA_KEYS},
    )


def data_to_wire(data: DocumentData) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(data.extras)
    out["coordinateFields"] = fields_to_wire(data.coordinate_fields)
    out["signatureFields"] = placements_to_wire(data.signature_fields)
    out["signatures"] = dict(data.signatures)
    return out


def status_log_from_wire(raw: Mapping[str, Any]) -> StatusLog:
    return StatusLog(
        status=DocumentStatus.parse(raw.get("status")),
        timestamp=parse_iso(raw.get("timestamp")),
        changed_by_email=raw.get("changedByEmail"),
        changed_by_name=raw.get("changedByName"),
        comment=raw.get("comment"),
    )


def document_from_wire(raw: Mapping[str, Any]) -> Document:
    tasks: List[Task] = []
    for item in raw.get("tasks") or []:
        if isinstance(item, Mapping):
            task = task_from_wire(item)
            if task is not None:
                tasks.append(task)
    template = raw.get("template")
    return Document(
        id=int(raw["id"]),
        status=DocumentStatus.parse(raw.get("status")),
        data=data_from_wire(raw.get("data")),
        tasks=tasks,
        title=str(raw.get("title") or ""),
        template_id=_int(raw.get("templateId")),
        template=dict(template) if isinstance(template, Mapping) else {},
        deadline=parse_iso(raw.get("deadline")),
        created_at=parse_iso(raw.get("createdAt")),
        updated_at=parse_iso(raw.get("updatedAt")),
        status_logs=[status_log_from_wire(s) for s in raw.get("statusLogs") or [] if isinstance(s, Mapping)],
    )
