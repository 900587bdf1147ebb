"""
===============================================================================
Workflow Policy – role-gated lifecycle guards
-------------------------------------------------------------------------------
Purpose:
    Decide, from a (possibly stale) document copy and the current actor,
    which lifecycle actions may be attempted. All computations are pure; the
    server stays the final authority and its re-fetched state always wins.

States:
    DRAFT -> EDITING -> READY_FOR_REVIEW -> REVIEWING -> SIGNING -> COMPLETED
    REVIEWING/SIGNING -> REJECTED

Guards:
    - assign reviewer : CREATOR, or EDITOR with can_assign_reviewer; status
                        READY_FOR_REVIEW; no REVIEWER task yet
    - review          : assigned REVIEWER; status READY_FOR_REVIEW/REVIEWING
    - sign            : assigned SIGNER without a signed slot; status SIGNING
    - reject          : authorized REVIEWER or SIGNER; non-empty reason
===============================================================================
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from documentlifecycle.exceptions.errors import GuardViolationError
from documentlifecycle.models.document import Document
from documentlifecycle.models.document_status import DocumentStatus
from documentlifecycle.models.task_role import TaskRole

_REVIEW_STATES = frozenset({DocumentStatus.READY_FOR_REVIEW, DocumentStatus.REVIEWING})
_PLACEMENT_STATES = frozenset({DocumentStatus.DRAFT, DocumentStatus.EDITING, DocumentStatus.READY_FOR_REVIEW})


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


@dataclass(slots=True)
class SignerProgress:
    email: str
    name: str
    signed: bool


@dataclass(slots=True)
class SigningProgress:
    """
    Per-signer signed state derived from the document's signature slots.

    ``expected_status_after_sign`` is only the local expectation; the status
    the client shows is always the one of the re-fetched document.
    """
    signers: List[SignerProgress] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.signers)

    @property
    def signed_count(self) -> int:
        return sum(1 for s in self.signers if s.signed)

    @property
    def all_signed(self) -> bool:
        return bool(self.signers) and all(s.signed for s in self.signers)

    def outstanding(self) -> List[SignerProgress]:
        return [s for s in self.signers if not s.signed]

    def expected_status_after_sign(self, email: Optional[str]) -> DocumentStatus:
        remaining = [s for s in self.outstanding() if _norm(s.email) != _norm(email)]
        return DocumentStatus.SIGNING if remaining else DocumentStatus.COMPLETED


class WorkflowPolicy:
    """Compute lifecycle permissions for one actor (identified by e-mail)."""

    # -------- Signing state ---------------------------------------------- #
    def has_signed(self, doc: Document, email: Optional[str]) -> bool:
        """True if ``email`` already produced a non-empty value on their own signer slot."""
        if not email:
            return False
        who = _norm(email)
        for slot in doc.data.signature_slots():
            if slot.kind.is_signer_slot and _norm(slot.assignee_email) == who and slot.is_signed:
                return True
        return False

    def signing_progress(self, doc: Document) -> SigningProgress:
        seen = set()
        signers: List[SignerProgress] = []
        for task in doc.tasks_for(TaskRole.SIGNER):
            key = _norm(task.assigned_user_email)
            if key in seen:
                continue
            seen.add(key)
            signers.append(SignerProgress(
                email=task.assigned_user_email,
                name=task.assigned_user_name or task.assigned_user_email,
                signed=self.has_signed(doc, task.assigned_user_email),
            ))
        return SigningProgress(signers)

    # -------- Guards ------------------------------------------------------- #
    def has_assignment_authority(self, doc: Document, email: Optional[str]) -> bool:
        if doc.task_of(TaskRole.CREATOR, email) is not None:
            return True
        editor = doc.task_of(TaskRole.EDITOR, email)
        return editor is not None and editor.can_assign_reviewer

    def can_assign_reviewer(self, doc: Document, email: Optional[str]) -> bool:
        return (
            doc.status == DocumentStatus.READY_FOR_REVIEW
            and not doc.tasks_for(TaskRole.REVIEWER)
            and self.has_assignment_authority(doc, email)
        )

    def can_place_signatures(self, doc: Document, email: Optional[str]) -> bool:
        return doc.status in _PLACEMENT_STATES and self.has_assignment_authority(doc, email)

    def can_review(self, doc: Document, email: Optional[str]) -> bool:
        return doc.status in _REVIEW_STATES and doc.task_of(TaskRole.REVIEWER, email) is not None

    def can_sign(self, doc: Document, email: Optional[str]) -> bool:
        return (
            doc.status == DocumentStatus.SIGNING
            and doc.task_of(TaskRole.SIGNER, email) is not None
            and not self.has_signed(doc, email)
        )

    def can_reject(self, doc: Document, email: Optional[str]) -> bool:
        if self.can_review(doc, email):
            return True
        return self.can_sign(doc, email)

    # -------- Raising variants (used right before a network action) -------- #
    def require_assign_reviewer(self, doc: Document, email: Optional[str], reviewer_email: str) -> None:
        if not reviewer_email or not reviewer_email.strip():
            raise GuardViolationError("A reviewer e-mail address is required.")
        if doc.status != DocumentStatus.READY_FOR_REVIEW:
            raise GuardViolationError("Reviewers can only be assigned while the document is ready for review.")
        if doc.tasks_for(TaskRole.REVIEWER):
            raise GuardViolationError("A reviewer is already assigned.")
        if not self.has_assignment_authority(doc, email):
            raise GuardViolationError("You are not allowed to assign a reviewer.")

    def require_place_signatures(self, doc: Document, email: Optional[str]) -> None:
        if not self.can_place_signatures(doc, email):
            raise GuardViolationError("You are not allowed to place signature fields on this document.")

    def require_review(self, doc: Document, email: Optional[str]) -> None:
        if doc.task_of(TaskRole.REVIEWER, email) is None:
            raise GuardViolationError("You are not a reviewer of this document.")
        if doc.status not in _REVIEW_STATES:
            raise GuardViolationError("The document is not in review.")

    def require_sign(self, doc: Document, email: Optional[str]) -> None:
        if doc.task_of(TaskRole.SIGNER, email) is None:
            raise GuardViolationError("You are not a signer of this document.")
        if doc.status != DocumentStatus.SIGNING:
            raise GuardViolationError("The document is not open for signing.")
        if self.has_signed(doc, email):
            raise GuardViolationError("You have already signed this document.")

    def require_reject(self, doc: Document, email: Optional[str], reason: str) -> None:
        if not reason or not reason.strip():
            raise GuardViolationError("A reason is required to reject the document.")
        if not self.can_reject(doc, email):
            raise GuardViolationError("You are not allowed to reject this document.")
