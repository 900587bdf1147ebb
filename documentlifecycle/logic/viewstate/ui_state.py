"""
===============================================================================
UI State (Document Lifecycle) – View-facing flags & hints
-------------------------------------------------------------------------------
Purpose:
    Provide a minimal, serializable structure that expresses which UI elements
    should be visible or enabled in the document view. This module is
    strictly view-oriented and holds no business logic.

Ownership:
    Instances are produced by UIStateService from the workflow policy and the
    current document copy. The view consumes this state to show/hide buttons
    and surface contextual hints.
===============================================================================
"""
from __future__ import annotations
from dataclasses import dataclass


@dataclass(slots=True)
class DocumentLifecycleUIState:
    """
    Encapsulates visibility and hinting for the document view.

    Fields
    ------
    show_assign_reviewer : bool
        Whether the 'Assign reviewer' action should be visible.
    show_place_signatures : bool
        Whether signer placement (and 'Placement complete') is available.
    show_approve : bool
        Whether the reviewer 'Approve' action should be visible.
    show_sign : bool
        Whether the signer 'Sign' action should be visible.
    show_reject : bool
        Whether 'Reject' (with reason) should be visible.
    show_export : bool
        Whether the flattened artifact can be exported (completed documents).
    status_text : str
        Badge text, including the rejected-earlier prefix.
    status_description : str
        One-sentence description of the status.
    progress_text : str
        "signed/total" while signing, empty otherwise.
    assignment_hint : str
        "Assigned as editor at …" style hint for the current user.
    error_message : str
        Last surfaced error (session expired, forbidden, missing, ...).
    document_missing : bool
        True once the document returned 404; every action is hidden.
    """
    show_assign_reviewer: bool = False
    show_place_signatures: bool = False
    show_approve: bool = False
    show_sign: bool = False
    show_reject: bool = False
    show_export: bool = False
    status_text: str = ""
    status_description: str = ""
    progress_text: str = ""
    assignment_hint: str = ""
    error_message: str = ""
    document_missing: bool = False
