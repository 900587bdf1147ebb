"""
Coordinate field variants.

A coordinate field is one of three kinds, each carrying only what it needs:

    PlainField          – free text; shows ``value`` or its ``label``
    TableField          – grid of cell texts (``TableData``)
    SignatureSlotField  – a region an editor or assigned signer signs into

``extras`` keeps wire attributes this client does not interpret (e.g.
``reviewerIndex``) so a round trip through ``PUT /documents/{id}`` does not
drop them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Union

from .field_kind import FieldKind
from .geometry import FieldGeometry
from .page import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE
from .table_data import TableData


@dataclass(frozen=True, slots=True)
class PlainField:
    id: str
    geometry: FieldGeometry
    label: str = ""
    required: bool = False
    value: str = ""
    font_size: int = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def kind(self) -> FieldKind:
        return FieldKind.PLAIN

    @property
    def page(self) -> int:
        return self.geometry.page


@dataclass(frozen=True, slots=True)
class TableField:
    id: str
    geometry: FieldGeometry
    table: TableData
    label: str = ""
    required: bool = False
    font_size: int = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def kind(self) -> FieldKind:
        return FieldKind.TABLE

    @property
    def page(self) -> int:
        return self.geometry.page


@dataclass(frozen=True, slots=True)
class SignatureSlotField:
    """
    ``value`` is empty (unsigned) or a normalized image-data string.
    ``assignee_email`` is None for editor signatures.
    """
    id: str
    geometry: FieldGeometry
    slot_kind: FieldKind = FieldKind.SIGNER_SIGNATURE
    label: str = ""
    required: bool = True
    value: str = ""
    assignee_email: Optional[str] = None
    assignee_name: Optional[str] = None
    font_size: int = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def kind(self) -> FieldKind:
        return self.slot_kind

    @property
    def page(self) -> int:
        return self.geometry.page

    @property
    def is_signed(self) -> bool:
        return bool(self.value and self.value.strip())


CoordinateField = Union[PlainField, TableField, SignatureSlotField]


def with_geometry(f: CoordinateField, geometry: FieldGeometry) -> CoordinateField:
    return replace(f, geometry=geometry)
