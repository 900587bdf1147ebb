"""
===============================================================================
Placement Session – buffered signer placement for one document
-------------------------------------------------------------------------------
Purpose:
    A role holder with assignment authority places signature regions for
    reviewers/signers. Placements are buffered client-side and mirrored into
    a per-document draft (key ``signatureFields_{documentId}``) until the
    explicit "placement complete" action merges them into
    ``Document.data.signatureFields``.

Rules:
    - place() uses the default geometry (100, 100, 200, 80); overlap allowed.
    - drag() clamps x/y at 0, resize() clamps to the minimum field size.
    - The draft entry is removed, not stored empty, once the buffer is empty.
    - Placements already persisted on the document are read-only.
    - complete_placement() is exclusive: a second call while one is in flight
      is a no-op. The buffer and draft are cleared only on success.
    - Placements included in an outstanding submission are locked until it
      settles; new placements may still be added meanwhile.
===============================================================================
"""
from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Optional

from core.logging.logic.logger import logger
from core.storage.kv_store import KeyValueStore
from fields.exceptions.errors import ImmutablePlacementError, PlacementInFlightError, UnknownFieldError
from fields.logic.serialization import placement_from_wire, placement_to_wire
from fields.models.geometry import FieldGeometry
from fields.models.signature_placement import SignaturePlacement

if TYPE_CHECKING:  # pragma: no cover
    from documentlifecycle.models.document import Document

_FEATURE = "FieldPlacement"

DRAFT_KEY_PREFIX = "signatureFields_"

# (document, merged placements) -> authoritative document
SubmitPlacements = Callable[["Document", List[SignaturePlacement]], Awaitable[Any]]


def draft_key(document_id: Any) -> str:
    return f"{DRAFT_KEY_PREFIX}{document_id}"


class PlacementSession:
    """Buffered signature placements of one document."""

    def __init__(
        self,
        document_id: Any,
        store: KeyValueStore,
        *,
        persisted: Iterable[SignaturePlacement] = (),
        submit: Optional[SubmitPlacements] = None,
    ) -> None:
        self._document_id = document_id
        self._store = store
        self._submit = submit
        self._persisted_ids = {p.id for p in persisted}
        self._buffer: Dict[str, SignaturePlacement] = {}
        self._in_flight = False
        self._submitting: set[str] = set()
        self._load_draft()

    # -------- State -------------------------------------------------------- #
    @property
    def document_id(self) -> Any:
        return self._document_id

    @property
    def placements(self) -> List[SignaturePlacement]:
        """Buffered placements in insertion order."""
        return list(self._buffer.values())

    @property
    def is_completing(self) -> bool:
        return self._in_flight

    def get(self, field_id: str) -> SignaturePlacement:
        self._check_editable(field_id)
        try:
            return self._buffer[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    def is_persisted(self, field_id: str) -> bool:
        return field_id in self._persisted_ids

    # -------- Placement operations ---------------------------------------- #
    def place(self, assignee_email: str, assignee_name: Optional[str] = None, *, page: int = 1) -> SignaturePlacement:
        placement = SignaturePlacement(
            id=f"signature-{uuid.uuid4().hex[:12]}",
            geometry=FieldGeometry.default(page),
            assignee_email=assignee_email,
            assignee_name=assignee_name,
        )
        self._buffer[placement.id] = placement
        self._save_draft()
        return placement

    def drag(self, field_id: str, dx: float, dy: float) -> SignaturePlacement:
        current = self.get(field_id)
        return self.set_geometry(field_id, current.geometry.moved(dx, dy))

    def resize(self, field_id: str, dw: float, dh: float) -> SignaturePlacement:
        current = self.get(field_id)
        return self.set_geometry(field_id, current.geometry.resized(dw, dh))

    def set_geometry(self, field_id: str, geometry: FieldGeometry) -> SignaturePlacement:
        current = self.get(field_id)
        updated = SignaturePlacement(
            id=current.id,
            geometry=geometry,
            assignee_email=current.assignee_email,
            assignee_name=current.assignee_name,
            signature_data=current.signature_data,
            extras=current.extras,
        )
        self._buffer[field_id] = updated
        self._save_draft()
        return updated

    def mark_persisted(self, persisted: Iterable[SignaturePlacement]) -> None:
        """Adopt the server's signature fields; matching buffered ids are dropped."""
        ids = {p.id for p in persisted}
        self._persisted_ids |= ids
        if any(field_id in self._buffer for field_id in ids):
            for field_id in ids:
                self._buffer.pop(field_id, None)
            self._save_draft()

    def remove(self, field_id: str) -> None:
        self.get(field_id)
        del self._buffer[field_id]
        self._save_draft()

    # -------- Completion --------------------------------------------------- #
    async def complete_placement(self, document: "Document") -> bool:
        """
        Merge the buffer into the document's signature fields and submit.

        Returns False when a completion is already in flight (no call is made).
        Submission errors propagate; the buffer and draft stay untouched.
        """
        if self._in_flight:
            logger.log(_FEATURE, "CompleteIgnored", level="DEBUG", reference_id=str(self._document_id))
            return False
        if self._submit is None:
            raise RuntimeError("PlacementSession has no submit callable")

        self._in_flight = True
        buffered = self.placements
        self._submitting = {p.id for p in buffered}
        try:
            merged = list(document.data.signature_fields) + buffered
            try:
                await self._submit(document, merged)
            except Exception as exc:
                logger.log(
                    _FEATURE, "CompleteFailed", level="ERROR",
                    reference_id=str(self._document_id), message=str(exc),
                )
                raise
            for p in buffered:
                self._persisted_ids.add(p.id)
                self._buffer.pop(p.id, None)
            self._save_draft()
            logger.log(
                _FEATURE, "CompleteSucceeded",
                reference_id=str(self._document_id), message=f"{len(buffered)} placement(s) persisted",
            )
            return True
        finally:
            self._in_flight = False
            self._submitting = set()

    # -------- Draft persistence ------------------------------------------- #
    def _check_editable(self, field_id: str) -> None:
        if field_id in self._persisted_ids:
            raise ImmutablePlacementError(field_id)
        if field_id in self._submitting:
            raise PlacementInFlightError(field_id)

    def _load_draft(self) -> None:
        raw = self._store.get(draft_key(self._document_id))
        if not raw:
            return
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("draft is not a list")
            loaded = [placement_from_wire(item) for item in items if isinstance(item, dict)]
        except (ValueError, TypeError) as exc:
            logger.log(
                _FEATURE, "DraftCorrupt", level="WARNING",
                reference_id=str(self._document_id), message=str(exc),
            )
            return
        for p in loaded:
            if p.id and p.id not in self._persisted_ids:
                self._buffer[p.id] = p

    def _save_draft(self) -> None:
        key = draft_key(self._document_id)
        if not self._buffer:
            self._store.remove(key)
            return
        payload = [placement_to_wire(p) for p in self._buffer.values()]
        self._store.set(key, json.dumps(payload, ensure_ascii=False))
