"""
Wire boundary for coordinate fields and signature placements.

The persistence API stores fields as loose JSON objects; this module is the
only place that sniffs their shape. Everything past it works with the typed
variants from ``fields.models``.

Table detection order:
    1. ``value`` holds JSON with ``rows`` and ``cols`` (the filled-in table)
    2. an explicit ``tableData`` descriptor (template table, cells optional)
A field typed ``table`` whose value cannot be read falls back to an empty
plain field; the failure is logged, never raised.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.logging.logic.logger import logger
from fields.models.coordinate_field import CoordinateField, PlainField, SignatureSlotField, TableField
from fields.models.field_kind import FieldKind
from fields.models.geometry import FieldGeometry
from fields.models.page import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE
from fields.models.signature_placement import SignaturePlacement
from fields.models.table_data import TableData

_FEATURE = "FieldModel"

_COMMON_KEYS = frozenset({
    "id", "label", "x", "y", "width", "height", "page", "required", "type",
    "value", "fontSize", "fontFamily", "tableData",
})
_ASSIGNEE_KEYS = frozenset({"signerEmail", "signerName", "reviewerEmail", "reviewerName"})
_PLACEMENT_KEYS = frozenset({
    "id", "x", "y", "width", "height", "page",
    "reviewerEmail", "signerEmail", "reviewerName", "signerName", "signatureData",
})


# --------------------------------------------------------------------------- #
#  Small coercions
# --------------------------------------------------------------------------- #
def _num(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _page(value: Any) -> int:
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _opt_text(value: Any) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _geometry(raw: Mapping[str, Any]) -> FieldGeometry:
    # loaded geometry is taken as stored; the size invariants apply to edits only
    return FieldGeometry(
        x=_num(raw.get("x")),
        y=_num(raw.get("y")),
        width=_num(raw.get("width")),
        height=_num(raw.get("height")),
        page=_page(raw.get("page", 1)),
    )


def _extras(raw: Mapping[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    known = set(known)
    return {k: v for k, v in raw.items() if k not in known}


# --------------------------------------------------------------------------- #
#  Tables
# --------------------------------------------------------------------------- #
def _table_from_mapping(data: Mapping[str, Any]) -> TableData:
    rows = int(data["rows"])
    cols = int(data["cols"])
    raw_cells = data.get("cells") or []
    cells: List[Tuple[str, ...]] = []
    for line in raw_cells:
        if isinstance(line, (list, tuple)):
            cells.append(tuple(_text(c) for c in line))
        else:
            cells.append(())
    widths = data.get("columnWidths")
    column_widths: Optional[Tuple[float, ...]] = None
    if isinstance(widths, (list, tuple)):
        column_widths = tuple(float(w) for w in widths)
    return TableData(rows=rows, cols=cols, cells=tuple(cells), column_widths=column_widths)


def parse_table_value(value: str) -> Optional[TableData]:
    """
    Parse a table value string; None when the value is not table JSON.

    Raises ``ValueError`` when the value is JSON-shaped but malformed.
    """
    text = (value or "").strip()
    if not text.startswith("{"):
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"malformed table JSON: {exc}") from exc
    if not isinstance(data, dict) or not data.get("rows") or not data.get("cols"):
        return None
    try:
        return _table_from_mapping(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"malformed table JSON: {exc}") from exc


def _detect_table(raw: Mapping[str, Any], kind: FieldKind) -> Optional[TableData]:
    value = _text(raw.get("value"))
    if value:
        try:
            parsed = parse_table_value(value)
        except ValueError:
            # plain text that merely looks like JSON stays plain text
            if kind is not FieldKind.TABLE and not raw.get("tableData"):
                return None
            raise
        if parsed is not None:
            return parsed
        if kind is FieldKind.TABLE and value.strip():
            raise ValueError("table field value is not table JSON")
    descriptor = raw.get("tableData")
    if isinstance(descriptor, Mapping) and descriptor.get("rows") and descriptor.get("cols"):
        try:
            return _table_from_mapping(descriptor)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"malformed tableData: {exc}") from exc
    if kind is FieldKind.TABLE:
        raise ValueError("table field without table data")
    return None


# --------------------------------------------------------------------------- #
#  Coordinate fields
# --------------------------------------------------------------------------- #
def field_from_wire(raw: Mapping[str, Any]) -> CoordinateField:
    """Build the typed variant for one wire field."""
    field_id = _text(raw.get("id"))
    kind = FieldKind.parse(raw.get("type"))
    geometry = _geometry(raw)
    label = _text(raw.get("label"))
    required = bool(raw.get("required", False))
    font_size = int(_num(raw.get("fontSize"), DEFAULT_FONT_SIZE)) or DEFAULT_FONT_SIZE
    font_family = _text(raw.get("fontFamily")) or DEFAULT_FONT_FAMILY

    if kind.is_signature:
        if kind is FieldKind.REVIEWER_SIGNATURE:
            email = raw.get("reviewerEmail") or raw.get("signerEmail")
            name = raw.get("reviewerName") or raw.get("signerName")
        else:
            email = raw.get("signerEmail") or raw.get("reviewerEmail")
            name = raw.get("signerName") or raw.get("reviewerName")
        return SignatureSlotField(
            id=field_id,
            geometry=geometry,
            slot_kind=kind,
            label=label,
            required=required,
            value=_text(raw.get("value")),
            assignee_email=_opt_text(email),
            assignee_name=_opt_text(name),
            font_size=font_size,
            font_family=font_family,
            extras=_extras(raw, _COMMON_KEYS | _ASSIGNEE_KEYS),
        )

    extras = _extras(raw, _COMMON_KEYS)
    try:
        table = _detect_table(raw, kind)
    except ValueError as exc:
        logger.log(_FEATURE, "TableParseFailed", level="WARNING", reference_id=field_id, message=str(exc))
        return PlainField(
            id=field_id,
            geometry=geometry,
            label=label,
            required=required,
            value="",
            font_size=font_size,
            font_family=font_family,
            extras=extras,
        )

    if table is not None:
        return TableField(
            id=field_id,
            geometry=geometry,
            table=table,
            label=label,
            required=required,
            font_size=font_size,
            font_family=font_family,
            extras=extras,
        )
    return PlainField(
        id=field_id,
        geometry=geometry,
        label=label,
        required=required,
        value=_text(raw.get("value")),
        font_size=font_size,
        font_family=font_family,
        extras=extras,
    )


def field_to_wire(f: CoordinateField) -> Dict[str, Any]:
    g = f.geometry
    data: Dict[str, Any] = dict(f.extras)
    data.update({
        "id": f.id,
        "label": f.label,
        "x": g.x,
        "y": g.y,
        "width": g.width,
        "height": g.height,
        "page": g.page,
        "required": f.required,
        "type": f.kind.value,
        "fontSize": f.font_size,
        "fontFamily": f.font_family,
    })
    if isinstance(f, TableField):
        data["value"] = json.dumps(f.table.to_dict(), ensure_ascii=False)
        descriptor: Dict[str, Any] = {"rows": f.table.rows, "cols": f.table.cols}
        if f.table.column_widths is not None:
            descriptor["columnWidths"] = list(f.table.column_widths)
        data["tableData"] = descriptor
    elif isinstance(f, SignatureSlotField):
        data["value"] = f.value
        if f.assignee_email is not None:
            prefix = "reviewer" if f.slot_kind is FieldKind.REVIEWER_SIGNATURE else "signer"
            data[f"{prefix}Email"] = f.assignee_email
            if f.assignee_name is not None:
                data[f"{prefix}Name"] = f.assignee_name
    else:
        data["value"] = f.value
    return data


def fields_from_wire(items: Any) -> List[CoordinateField]:
    if not isinstance(items, list):
        return []
    return [field_from_wire(item) for item in items if isinstance(item, Mapping)]


def fields_to_wire(items: Iterable[CoordinateField]) -> List[Dict[str, Any]]:
    return [field_to_wire(f) for f in items]


# --------------------------------------------------------------------------- #
#  Signature placements
# --------------------------------------------------------------------------- #
def placement_from_wire(raw: Mapping[str, Any]) -> SignaturePlacement:
    return SignaturePlacement(
        id=_text(raw.get("id")),
        geometry=_geometry(raw),
        assignee_email=_text(raw.get("reviewerEmail") or raw.get("signerEmail")),
        assignee_name=_opt_text(raw.get("reviewerName") or raw.get("signerName")),
        signature_data=_text(raw.get("signatureData")),
        extras=_extras(raw, _PLACEMENT_KEYS),
    )


def placement_to_wire(p: SignaturePlacement) -> Dict[str, Any]:
    g = p.geometry
    data: Dict[str, Any] = dict(p.extras)
    data.update({
        "id": p.id,
        "x": g.x,
        "y": g.y,
        "width": g.width,
        "height": g.height,
        "page": g.page,
        "reviewerEmail": p.assignee_email,
    })
    if p.assignee_name is not None:
        data["reviewerName"] = p.assignee_name
    if p.signature_data:
        data["signatureData"] = p.signature_data
    return data


def placements_from_wire(items: Any) -> List[SignaturePlacement]:
    if not isinstance(items, list):
        return []
    return [placement_from_wire(item) for item in items if isinstance(item, Mapping)]


def placements_to_wire(items: Iterable[SignaturePlacement]) -> List[Dict[str, Any]]:
    return [placement_to_wire(p) for p in items]
