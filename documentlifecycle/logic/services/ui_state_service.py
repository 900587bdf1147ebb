"""
===============================================================================
UI State Service – compose policies into view-facing state
-------------------------------------------------------------------------------
Purpose:
    Build a DocumentLifecycleUIState for a (document, actor) combination by
    applying the workflow policy to the current document copy.

Design:
    - Pure read side: no fetching, no writes, no popups/UI code here.
    - Called again after every re-fetch; guards are never cached.
===============================================================================
"""
from __future__ import annotations
from typing import Optional

from core.helpers.date_time_helper import format_short
from documentlifecycle.logic.viewstate.ui_state import DocumentLifecycleUIState
from documentlifecycle.models.document import Document
from documentlifecycle.models.document_status import DocumentStatus, badge_text
from documentlifecycle.models.task_role import TaskRole
from ..policy.workflow_policy import WorkflowPolicy

_HINT_ROLE = {
    DocumentStatus.EDITING: (TaskRole.EDITOR, "Assigned as editor"),
    DocumentStatus.REVIEWING: (TaskRole.REVIEWER, "Assigned as reviewer"),
}


def assignment_hint(doc: Document, email: Optional[str]) -> str:
    """
    "Assigned as editor at 03-14 09:05" while EDITING, the reviewer variant
    while REVIEWING; empty in every other state or without a timestamp.
    """
    entry = _HINT_ROLE.get(doc.status)
    if entry is None:
        return ""
    role, label = entry
    task = doc.task_of(role, email)
    if task is None or task.created_at is None:
        return ""
    return f"{label} at {format_short(task.created_at)}"


class UIStateService:
    """
    Compose the workflow policy into a view-ready UI state.

    Responsibilities:
        - Decide action visibility (assign/place/approve/sign/reject/export).
        - Provide status, progress and assignment hints.
    """

    def __init__(self, policy: Optional[WorkflowPolicy] = None) -> None:
        self._wf = policy or WorkflowPolicy()

    def compute(self, *, doc: Optional[Document], email: Optional[str]) -> DocumentLifecycleUIState:
        state = DocumentLifecycleUIState()
        if doc is None:
            return state

        state.status_text = badge_text(doc.status, rejected_before=doc.was_rejected_before())
        state.status_description = doc.status.description

        state.show_assign_reviewer = self._wf.can_assign_reviewer(doc, email)
        state.show_place_signatures = self._wf.can_place_signatures(doc, email)
        state.show_approve = self._wf.can_review(doc, email)
        state.show_sign = self._wf.can_sign(doc, email)
        state.show_reject = self._wf.can_reject(doc, email)
        state.show_export = doc.status == DocumentStatus.COMPLETED

        if doc.status == DocumentStatus.SIGNING:
            progress = self._wf.signing_progress(doc)
            state.progress_text = f"{progress.signed_count}/{progress.total} signed"

        state.assignment_hint = assignment_hint(doc, email)
        return state

    @staticmethod
    def missing() -> DocumentLifecycleUIState:
        """State after a 404: nothing can be done with the document."""
        return DocumentLifecycleUIState(
            document_missing=True,
            status_text="Unavailable",
            error_message="The document is not available.",
        )
