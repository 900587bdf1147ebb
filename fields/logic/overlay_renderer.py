"""
===============================================================================
Overlay Renderer – field + viewport -> visual geometry and content
-------------------------------------------------------------------------------
Purpose:
    Map coordinate fields (page pixels on the fixed 1240×1754 raster) onto a
    container of arbitrary width. Toolkit independent: the result is a list of
    ``RenderedField`` records a view (Tk canvas, PDF exporter) draws as-is.

Scale:
    s = min(1, containerWidth / 1240), uniform on both axes, one value for all
    fields of a render pass. Recompute on every container resize and every
    document/page change by calling ``render`` again.

Content dispatch:
    PlainField with value  -> TextContent (centered, ellipsis on overflow)
    PlainField empty       -> LabelContent (+ required marker)
    TableField             -> TableContent (uniform or columnWidths fractions)
    SignatureSlotField     -> SignatureImageContent (aspect-preserving fit)
                              or PlaceholderContent ("unsigned", self marker)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from core.helpers.image_data import image_size as _decode_image_size
from fields.models.coordinate_field import CoordinateField, PlainField, SignatureSlotField, TableField
from fields.models.field_kind import FieldKind
from fields.models.geometry import FieldGeometry
from fields.models.page import PAGE_HEIGHT, PAGE_WIDTH
from fields.models.signature_placement import SignaturePlacement

ELLIPSIS = "…"
REQUIRED_MARKER = "*"
UNSIGNED_TEXT = "unsigned"
SELF_INDICATOR = "(you)"
TEXT_PADDING = 4.0


def compute_scale(container_width: float, page_width: float = PAGE_WIDTH) -> float:
    """Scale-to-fit factor; never enlarges. Non-positive widths render at 1."""
    if container_width <= 0 or page_width <= 0:
        return 1.0
    return min(1.0, container_width / page_width)


def page_display_size(scale: float) -> Tuple[int, int]:
    """Display size of the page raster; fields are laid out against the logical page, not the image pixels."""
    return max(1, int(PAGE_WIDTH * scale)), max(1, int(PAGE_HEIGHT * scale))


def _norm(email: Optional[str]) -> str:
    return (email or "").strip().lower()


# --------------------------------------------------------------------------- #
#  Geometry records
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def scaled(cls, geometry: FieldGeometry, scale: float) -> "Rect":
        return cls(geometry.x * scale, geometry.y * scale, geometry.width * scale, geometry.height * scale)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass(frozen=True, slots=True)
class Viewport:
    """What the viewer looks at: container width, current page, who is looking."""
    container_width: float
    page: int = 1
    viewer_email: Optional[str] = None

    @property
    def scale(self) -> float:
        return compute_scale(self.container_width)


# --------------------------------------------------------------------------- #
#  Content variants
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class TextContent:
    text: str
    font_size: float
    font_family: str
    truncated: bool = False


@dataclass(frozen=True, slots=True)
class LabelContent:
    label: str
    required: bool
    font_size: float

    @property
    def text(self) -> str:
        return f"{self.label} {REQUIRED_MARKER}" if self.required else self.label


@dataclass(frozen=True, slots=True)
class TableContent:
    rows: int
    cols: int
    column_widths: Tuple[float, ...]     # display pixels, one per column
    row_height: float
    cells: Tuple[Tuple[str, ...], ...]
    font_size: float

    def column_offset(self, col: int) -> float:
        return sum(self.column_widths[:col])

    def cell_rect(self, row: int, col: int) -> Rect:
        """Cell bounds relative to the field's top-left corner."""
        return Rect(self.column_offset(col), row * self.row_height, self.column_widths[col], self.row_height)


@dataclass(frozen=True, slots=True)
class SignatureImageContent:
    data: str
    image_rect: Rect                      # relative to the field's top-left corner


@dataclass(frozen=True, slots=True)
class PlaceholderContent:
    name: str
    is_self: bool = False

    @property
    def text(self) -> str:
        base = f"{self.name} ({UNSIGNED_TEXT})" if self.name else UNSIGNED_TEXT
        return f"{base} {SELF_INDICATOR}" if self.is_self else base


FieldContent = Union[TextContent, LabelContent, TableContent, SignatureImageContent, PlaceholderContent]


@dataclass(frozen=True, slots=True)
class RenderedField:
    field_id: str
    kind: FieldKind
    rect: Rect
    content: FieldContent
    scale: float


# --------------------------------------------------------------------------- #
#  Text measuring
# --------------------------------------------------------------------------- #
class TextMeasurer(Protocol):
    def width(self, text: str, font_size: float) -> float: ...


class AverageCharMeasurer:
    """Rough estimate without font metrics."""

    def __init__(self, char_ratio: float = 0.55) -> None:
        self._ratio = char_ratio

    def width(self, text: str, font_size: float) -> float:
        return len(text) * font_size * self._ratio


def fit_text(text: str, max_width: float, font_size: float, measurer: TextMeasurer) -> Tuple[str, bool]:
    """Longest prefix of ``text`` (plus ellipsis) that fits ``max_width``."""
    if measurer.width(text, font_size) <= max_width:
        return text, False
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if measurer.width(text[:mid] + ELLIPSIS, font_size) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo].rstrip() + ELLIPSIS, True


def fit_image(image_w: float, image_h: float, box_w: float, box_h: float) -> Rect:
    """Largest aspect-preserving rect inside the box, centered."""
    if image_w <= 0 or image_h <= 0 or box_w <= 0 or box_h <= 0:
        return Rect(0.0, 0.0, max(0.0, box_w), max(0.0, box_h))
    ratio = min(box_w / image_w, box_h / image_h)
    w, h = image_w * ratio, image_h * ratio
    return Rect((box_w - w) / 2, (box_h - h) / 2, w, h)


def table_column_widths(table_cols: int, usable: Optional[Sequence[float]], width: float) -> Tuple[float, ...]:
    """Column pixel widths: fractions as given (not normalized) or uniform."""
    if table_cols <= 0:
        return ()
    if usable:
        return tuple(f * width for f in usable)
    return tuple(width / table_cols for _ in range(table_cols))


# --------------------------------------------------------------------------- #
#  Renderer
# --------------------------------------------------------------------------- #
class OverlayRenderer:
    """Stateless mapper; one ``render`` call per layout pass."""

    def __init__(
        self,
        *,
        measurer: Optional[TextMeasurer] = None,
        image_size: Optional[Callable[[str], Optional[Tuple[int, int]]]] = None,
    ) -> None:
        self._measurer = measurer or AverageCharMeasurer()
        self._image_size = image_size or _decode_image_size

    def render(self, fields: Iterable[CoordinateField], viewport: Viewport) -> List[RenderedField]:
        """Fields on ``viewport.page`` in z-order (input order)."""
        scale = viewport.scale
        out: List[RenderedField] = []
        for f in fields:
            if f.page != viewport.page:
                continue
            rect = Rect.scaled(f.geometry, scale)
            out.append(RenderedField(f.id, f.kind, rect, self._content(f, rect, scale, viewport), scale))
        return out

    def render_placements(self, placements: Iterable[SignaturePlacement], viewport: Viewport) -> List[RenderedField]:
        scale = viewport.scale
        out: List[RenderedField] = []
        for p in placements:
            if p.page != viewport.page:
                continue
            rect = Rect.scaled(p.geometry, scale)
            content = self._signature_content(p.signature_data, p.display_name, p.assignee_email, rect, viewport)
            out.append(RenderedField(p.id, FieldKind.SIGNER_SIGNATURE, rect, content, scale))
        return out

    # -------- Content dispatch -------------------------------------------- #
    def _content(self, f: CoordinateField, rect: Rect, scale: float, viewport: Viewport) -> FieldContent:
        font_size = f.font_size * scale
        if isinstance(f, TableField):
            table = f.table
            widths = table_column_widths(table.cols, table.usable_column_widths(), rect.width)
            row_height = rect.height / table.rows if table.rows > 0 else rect.height
            cells = tuple(tuple(line) for line in table.grid())
            return TableContent(table.rows, table.cols, widths, row_height, cells, font_size)
        if isinstance(f, SignatureSlotField):
            name = f.assignee_name or f.assignee_email or f.label
            return self._signature_content(f.value, name, f.assignee_email, rect, viewport)
        if isinstance(f, PlainField) and f.value.strip():
            text, truncated = fit_text(f.value, max(0.0, rect.width - 2 * TEXT_PADDING), font_size, self._measurer)
            return TextContent(text, font_size, f.font_family, truncated)
        return LabelContent(f.label, f.required, font_size)

    def _signature_content(
        self,
        data: str,
        name: str,
        assignee_email: Optional[str],
        rect: Rect,
        viewport: Viewport,
    ) -> FieldContent:
        if data and data.strip():
            size = self._image_size(data)
            if size is None:
                image_rect = Rect(0.0, 0.0, rect.width, rect.height)
            else:
                image_rect = fit_image(size[0], size[1], rect.width, rect.height)
            return SignatureImageContent(data, image_rect)
        is_self = bool(assignee_email) and _norm(assignee_email) == _norm(viewport.viewer_email)
        return PlaceholderContent(name or "", is_self)
