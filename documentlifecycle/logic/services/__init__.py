"""Services layer for the document lifecycle.

Workflow actions against the API, view-state composition and the
per-user document session.
"""

from documentlifecycle.logic.services.ui_state_service import UIStateService
from documentlifecycle.logic.services.workflow_service import WorkflowService
from documentlifecycle.logic.services.document_session import DocumentSession

__all__ = [
    "UIStateService",
    "WorkflowService",
    "DocumentSession",
]
