from __future__ import annotations
from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle status of a document as reported by the persistence API."""
    DRAFT = "DRAFT"
    EDITING = "EDITING"
    READY_FOR_REVIEW = "READY_FOR_REVIEW"
    REVIEWING = "REVIEWING"
    SIGNING = "SIGNING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.COMPLETED, DocumentStatus.REJECTED)

    @property
    def display_text(self) -> str:
        return _PRESENTATION[self][0]

    @property
    def description(self) -> str:
        return _PRESENTATION[self][1]

    @classmethod
    def parse(cls, raw: object) -> "DocumentStatus":
        """Unknown values are shown as DRAFT."""
        try:
            return cls(str(raw or "").strip().upper())
        except ValueError:
            return cls.DRAFT


REJECTED_PREFIX = "<Rejected>"

_PRESENTATION = {
    DocumentStatus.DRAFT: ("Draft", "The document is saved as a draft."),
    DocumentStatus.EDITING: ("Editing", "The document is being filled in."),
    DocumentStatus.READY_FOR_REVIEW: ("Assign signers", "Waiting for reviewers/signers to be assigned."),
    DocumentStatus.REVIEWING: ("In review", "A reviewer is reviewing the document."),
    DocumentStatus.SIGNING: ("Signing", "Signers are signing the document."),
    DocumentStatus.COMPLETED: ("Completed", "All work on the document is finished."),
    DocumentStatus.REJECTED: ("Rejected", "The document was rejected and needs changes."),
}


def badge_text(status: DocumentStatus, *, rejected_before: bool = False) -> str:
    """Status badge text; documents rejected earlier carry a prefix while in another state."""
    if rejected_before and status is not DocumentStatus.REJECTED:
        return f"{REJECTED_PREFIX} {status.display_text}"
    return status.display_text
