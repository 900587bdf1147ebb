from .coordinate_field import CoordinateField, PlainField, SignatureSlotField, TableField, with_geometry
from .field_kind import FieldKind
from .geometry import FieldGeometry
from .signature_placement import SignaturePlacement
from .table_data import TableData

__all__ = [
    "CoordinateField",
    "FieldGeometry",
    "FieldKind",
    "PlainField",
    "SignaturePlacement",
    "SignatureSlotField",
    "TableData",
    "TableField",
    "with_geometry",
]
