"""
===============================================================================
DocumentSession – the open document of one signed-in user
-------------------------------------------------------------------------------
Purpose:
    Own the current document copy, its UI state and the signer placement
    buffer. Every action goes through WorkflowService and the re-fetched
    document replaces the local copy.

Concurrency:
    Each load/action takes a generation number. When the user switches to
    another document (or reloads) while a request is in flight, the late
    result no longer matches the current generation and is discarded.

Errors:
    404 -> UI state "missing" (all actions hidden), no exception.
    Everything else -> error_message on the UI state, then re-raised.
    401 additionally calls ``on_session_expired``.
===============================================================================
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional

from core.logging.logic.logger import logger
from core.models.user import SessionUser
from core.storage.kv_store import KeyValueStore
from documentlifecycle.exceptions.errors import (
    DocumentLifecycleError,
    DocumentNotFoundError,
    SessionExpiredError,
)
from documentlifecycle.logic.services.ui_state_service import UIStateService
from documentlifecycle.logic.services.workflow_service import WorkflowService
from documentlifecycle.logic.viewstate.ui_state import DocumentLifecycleUIState
from documentlifecycle.models.document import Document
from fields.logic.placement_session import PlacementSession
from fields.models.signature_placement import SignaturePlacement

_FEATURE = "DocumentSession"


class DocumentSession:
    """Current document + derived view state for one user."""

    def __init__(
        self,
        workflow: WorkflowService,
        user: SessionUser,
        store: KeyValueStore,
        *,
        ui_service: Optional[UIStateService] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
    ) -> None:
        self._workflow = workflow
        self._user = user
        self._store = store
        self._ui = ui_service or UIStateService(workflow.policy)
        self._on_expired = on_session_expired
        self._generation = 0
        self._document_id: Any = None
        self.document: Optional[Document] = None
        self.ui_state: DocumentLifecycleUIState = DocumentLifecycleUIState()
        self.placements: Optional[PlacementSession] = None

    # -------- Properties --------------------------------------------------- #
    @property
    def user(self) -> SessionUser:
        return self._user

    @property
    def document_id(self) -> Any:
        return self._document_id

    @property
    def generation(self) -> int:
        return self._generation

    # -------- Loading ------------------------------------------------------ #
    async def load(self, document_id: Any) -> Optional[Document]:
        """Open ``document_id``; a result arriving after a newer load is dropped."""
        self._generation += 1
        generation = self._generation
        if document_id != self._document_id:
            self._document_id = document_id
            self.document = None
            self.placements = None
            self.ui_state = DocumentLifecycleUIState()

        doc = await self._guarded(generation, lambda: self._workflow.refresh(document_id))
        if doc is None:
            return None
        try:
            await self._workflow.mark_viewed(document_id)
        except DocumentLifecycleError as exc:
            logger.log(_FEATURE, "MarkViewedFailed", level="WARNING", user_id=self._user.email,
                       reference_id=str(document_id), message=str(exc))
        return doc

    async def switch_document(self, document_id: Any) -> Optional[Document]:
        return await self.load(document_id)

    async def refresh(self) -> Optional[Document]:
        if self._document_id is None:
            return None
        self._generation += 1
        generation = self._generation
        document_id = self._document_id
        return await self._guarded(generation, lambda: self._workflow.refresh(document_id))

    async def fetch_asset(self, url: str) -> bytes:
        """Page raster bytes; errors propagate without touching the UI state."""
        return await self._workflow.fetch_asset(url)

    # -------- Actions ------------------------------------------------------ #
    async def approve(self, signature_data: str) -> Optional[Document]:
        doc = self._require_document()
        return await self._action(
            lambda: self._workflow.approve(doc, actor=self._user.email, signature_data=signature_data)
        )

    async def reject(self, reason: str) -> Optional[Document]:
        doc = self._require_document()
        return await self._action(lambda: self._workflow.reject(doc, actor=self._user.email, reason=reason))

    async def assign_reviewer(self, reviewer_email: str) -> Optional[Document]:
        doc = self._require_document()
        return await self._action(
            lambda: self._workflow.assign_reviewer(doc, actor=self._user.email, reviewer_email=reviewer_email)
        )

    async def complete_placement(self) -> bool:
        """Submit buffered placements; False when nothing was sent."""
        doc = self._require_document()
        if self.placements is None or not self.placements.placements:
            return False
        generation = self._generation
        try:
            done = await self.placements.complete_placement(doc)
        except DocumentLifecycleError as exc:
            self._surface(generation, exc)
            raise
        return done

    # -------- Internals ---------------------------------------------------- #
    def _require_document(self) -> Document:
        if self.document is None:
            raise DocumentNotFoundError("No document is open.")
        return self.document

    async def _action(self, call: Callable[[], Awaitable[Document]]) -> Optional[Document]:
        self._generation += 1
        return await self._guarded(self._generation, call)

    async def _guarded(self, generation: int, call: Callable[[], Awaitable[Document]]) -> Optional[Document]:
        try:
            doc = await call()
        except DocumentNotFoundError:
            if generation == self._generation:
                self.document = None
                self.placements = None
                self.ui_state = self._ui.missing()
                logger.log(_FEATURE, "DocumentMissing", level="WARNING", user_id=self._user.email,
                           reference_id=str(self._document_id))
            return None
        except DocumentLifecycleError as exc:
            self._surface(generation, exc)
            raise
        if generation != self._generation:
            logger.log(_FEATURE, "StaleResultDiscarded", level="DEBUG", user_id=self._user.email,
                       reference_id=str(doc.id), message=f"generation {generation} < {self._generation}")
            return None
        self._apply(doc)
        return doc

    def _surface(self, generation: int, exc: DocumentLifecycleError) -> None:
        if isinstance(exc, SessionExpiredError) and self._on_expired is not None:
            self._on_expired()
        if generation == self._generation:
            self.ui_state.error_message = exc.user_message

    def _apply(self, doc: Document) -> None:
        self.document = doc
        self.ui_state = self._ui.compute(doc=doc, email=self._user.email)
        persisted = doc.data.signature_fields
        if self.placements is None or self.placements.document_id != doc.id:
            self.placements = PlacementSession(
                doc.id, self._store, persisted=persisted, submit=self._submit_placements,
            )
        else:
            self.placements.mark_persisted(persisted)

    async def _submit_placements(self, doc: Document, placements: List[SignaturePlacement]) -> Document:
        generation = self._generation
        fresh = await self._workflow.submit_placements(doc, placements, actor=self._user.email)
        if generation == self._generation:
            self._apply(fresh)
        return fresh
