"""Document lifecycle feature exceptions.

Every error carries the message shown to the user and whether re-invoking
the action can help. Nothing here is retried automatically.
"""
from __future__ import annotations

from typing import Optional


class DocumentLifecycleError(Exception):
    """Base exception for the document lifecycle feature."""

    retryable: bool = False
    default_message: str = "The action could not be completed."

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.default_message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return str(self)


class SessionExpiredError(DocumentLifecycleError):
    """401: the bearer credential is no longer valid."""
    default_message = "Your session has expired. Please sign in again."


class ForbiddenError(DocumentLifecycleError):
    """403: authenticated, but not allowed to act on this document."""
    default_message = "You are not allowed to perform this action."


class DocumentNotFoundError(DocumentLifecycleError):
    """404: the document does not exist (any more)."""
    default_message = "The document is not available."


class GuardViolationError(DocumentLifecycleError):
    """A client-side guard rejected the action before any call was made."""
    default_message = "This action is not possible in the document's current state."


class ServerValidationError(DocumentLifecycleError):
    """Other 4xx: the server refused; its message is shown verbatim."""
    retryable = True


class TransientNetworkError(DocumentLifecycleError):
    """5xx or transport failure."""
    retryable = True
    default_message = "The server could not be reached. Please try again."
