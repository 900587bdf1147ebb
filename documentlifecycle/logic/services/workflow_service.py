"""
===============================================================================
WorkflowService – guarded lifecycle actions against the persistence API
-------------------------------------------------------------------------------
Every action follows the same steps:
    1. check the client-side guard (GuardViolationError, no call made)
    2. perform the API call
    3. re-fetch the document; the re-fetched copy is authoritative
    4. log the outcome under feature "DocumentWorkflow"

The client never derives the next status itself. A signer approving may
complete the document or leave it in SIGNING; which one happened is read
from the re-fetched document.

Collaborators
    - DocumentApiClient (network)
    - WorkflowPolicy (guards)
===============================================================================
"""
from __future__ import annotations

from dataclasses import replace
from typing import Awaitable, Callable, List, Optional

from core.logging.logic.logger import logger
from documentlifecycle.exceptions.errors import DocumentLifecycleError, GuardViolationError
from documentlifecycle.logic.api.document_api_client import DocumentApiClient
from documentlifecycle.logic.policy.workflow_policy import WorkflowPolicy
from documentlifecycle.models.document import Document
from documentlifecycle.models.task_role import TaskRole
from fields.models.signature_placement import SignaturePlacement

_FEATURE = "DocumentWorkflow"


class WorkflowService:
    """Encapsulates lifecycle transitions; returns the re-fetched document."""

    def __init__(self, api: DocumentApiClient, policy: Optional[WorkflowPolicy] = None) -> None:
        self._api = api
        self._wf = policy or WorkflowPolicy()

    @property
    def policy(self) -> WorkflowPolicy:
        return self._wf

    # -------- Read --------------------------------------------------------- #
    async def refresh(self, document_id: int) -> Document:
        return await self._api.get_document(document_id)

    async def mark_viewed(self, document_id: int) -> None:
        await self._api.mark_viewed(document_id)

    async def fetch_asset(self, url: str) -> bytes:
        return await self._api.fetch_asset(url)

    # -------- Transitions -------------------------------------------------- #
    async def assign_reviewer(self, doc: Document, *, actor: str, reviewer_email: str) -> Document:
        self._wf.require_assign_reviewer(doc, actor, reviewer_email)
        return await self._run(
            doc, "AssignReviewer", actor,
            lambda: self._api.assign_reviewer(doc.id, reviewer_email.strip()),
        )

    async def approve_review(self, doc: Document, *, actor: str, signature_data: str) -> Document:
        self._wf.require_review(doc, actor)
        self._require_signature(signature_data)
        return await self._run(
            doc, "ReviewApproved", actor,
            lambda: self._api.approve(doc.id, signature_data, reviewer_email=actor),
        )

    async def sign(self, doc: Document, *, actor: str, signature_data: str) -> Document:
        self._wf.require_sign(doc, actor)
        self._require_signature(signature_data)
        return await self._run(
            doc, "Signed", actor,
            lambda: self._api.approve(doc.id, signature_data),
        )

    async def approve(self, doc: Document, *, actor: str, signature_data: str) -> Document:
        """Approve in whichever capacity the actor currently holds (reviewer or signer)."""
        if self._wf.can_review(doc, actor):
            return await self.approve_review(doc, actor=actor, signature_data=signature_data)
        return await self.sign(doc, actor=actor, signature_data=signature_data)

    async def reject(self, doc: Document, *, actor: str, reason: str) -> Document:
        self._wf.require_reject(doc, actor, reason)
        reviewer_email = actor if doc.task_of(TaskRole.REVIEWER, actor) is not None else None
        return await self._run(
            doc, "Rejected", actor,
            lambda: self._api.reject(doc.id, reason.strip(), reviewer_email=reviewer_email),
        )

    # -------- Field persistence -------------------------------------------- #
    async def submit_placements(self, doc: Document, placements: List[SignaturePlacement], *, actor: str) -> Document:
        """PUT the document data with ``placements`` as its signature fields."""
        self._wf.require_place_signatures(doc, actor)
        data = replace(doc.data, signature_fields=list(placements))
        return await self._run(doc, "PlacementCompleted", actor, lambda: self._api.update_document(doc.id, data))

    # -------- Internals ---------------------------------------------------- #
    @staticmethod
    def _require_signature(signature_data: str) -> None:
        if not signature_data or not signature_data.strip():
            raise GuardViolationError("A signature is required.")

    async def _run(self, doc: Document, event: str, actor: str, call: Callable[[], Awaitable[None]]) -> Document:
        try:
            await call()
        except DocumentLifecycleError as exc:
            logger.log(
                _FEATURE, f"{event}Failed", level="ERROR", user_id=actor,
                reference_id=str(doc.id), message=f"{type(exc).__name__}: {exc}",
            )
            raise
        fresh = await self._api.get_document(doc.id)
        logger.log(
            _FEATURE, event, user_id=actor, reference_id=str(doc.id),
            message=f"{doc.status.value} -> {fresh.status.value}",
        )
        return fresh
