"""
Flattened artifact export.

Composites every page raster with its rendered fields (text, tables,
signature images) into one multi-page PDF, the printable form of a fully
signed document. Fields are laid out by ``OverlayRenderer`` at scale 1 so
the PDF shows exactly what the overlay shows.

Page pixels (1240×1754) are mapped onto A4 points; ReportLab's origin is the
bottom-left corner, page pixels start top-left.
"""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.helpers.image_data import decode_image
from core.logging.logic.logger import logger
from fields.logic.overlay_renderer import (
    LabelContent,
    OverlayRenderer,
    PlaceholderContent,
    RenderedField,
    SignatureImageContent,
    TableContent,
    TextContent,
    Viewport,
)
from fields.models.coordinate_field import CoordinateField
from fields.models.page import PAGE_HEIGHT, PAGE_WIDTH
from fields.models.signature_placement import SignaturePlacement

_FEATURE = "ArtifactExport"


class ArtifactExporter:
    """Writes page rasters plus field content into a PDF."""

    def __init__(self, renderer: Optional[OverlayRenderer] = None, *, font_name: str = "Helvetica") -> None:
        self._renderer = renderer or OverlayRenderer()
        self._font = font_name
        self._pt = A4[0] / PAGE_WIDTH      # points per page pixel

    def export(
        self,
        pages: Sequence[Optional[Image.Image]],
        fields: Iterable[CoordinateField],
        placements: Iterable[SignaturePlacement] = (),
        *,
        title: str = "",
        include_placeholders: bool = False,
    ) -> bytes:
        """
        Build the PDF. ``pages[i]`` is the raster of page ``i + 1`` (None for a
        blank page). Unsigned placeholders are skipped unless requested.
        """
        fields = list(fields)
        placements = list(placements)
        buf = BytesIO()
        page_w, page_h = PAGE_WIDTH * self._pt, PAGE_HEIGHT * self._pt
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))
        if title:
            c.setTitle(title)

        for index, raster in enumerate(pages or [None]):
            page_no = index + 1
            if raster is not None:
                c.drawImage(ImageReader(raster.convert("RGB")), 0, 0, width=page_w, height=page_h)
            viewport = Viewport(container_width=PAGE_WIDTH, page=page_no)
            rendered: List[RenderedField] = self._renderer.render(fields, viewport)
            rendered += self._renderer.render_placements(placements, viewport)
            for item in rendered:
                self._draw(c, item, page_h, include_placeholders)
            c.showPage()

        c.save()
        logger.log(_FEATURE, "Exported", message=f"{len(pages) or 1} page(s), {len(fields)} field(s)")
        return buf.getvalue()

    def export_to(self, path: Path | str, pages: Sequence[Optional[Image.Image]], fields: Iterable[CoordinateField],
                  placements: Iterable[SignaturePlacement] = (), *, title: str = "") -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.export(pages, fields, placements, title=title))
        return target

    # ------------------------------------------------------------------ #
    def _box(self, x: float, y: float, w: float, h: float, page_h: float):
        """Page-pixel box -> (left, bottom, width, height) in points."""
        pt = self._pt
        return x * pt, page_h - (y + h) * pt, w * pt, h * pt

    def _draw(self, c: canvas.Canvas, item: RenderedField, page_h: float, include_placeholders: bool) -> None:
        r = item.rect
        left, bottom, width, height = self._box(r.x, r.y, r.width, r.height, page_h)
        content = item.content

        if isinstance(content, TextContent):
            c.setFont(self._font, max(4.0, content.font_size * self._pt))
            c.drawCentredString(left + width / 2, bottom + height / 2 - content.font_size * self._pt / 3, content.text)
        elif isinstance(content, TableContent):
            self._draw_table(c, content, r.x, r.y, page_h)
        elif isinstance(content, SignatureImageContent):
            try:
                img = decode_image(content.data).convert("RGBA")
            except ValueError as exc:
                logger.log(_FEATURE, "SignatureUnreadable", level="WARNING", reference_id=item.field_id, message=str(exc))
                return
            ir = content.image_rect
            il, ib, iw, ih = self._box(r.x + ir.x, r.y + ir.y, ir.width, ir.height, page_h)
            c.drawImage(ImageReader(img), il, ib, width=iw, height=ih, mask="auto")
        elif isinstance(content, PlaceholderContent) and include_placeholders:
            c.setFont(self._font, 8)
            c.rect(left, bottom, width, height)
            c.drawCentredString(left + width / 2, bottom + height / 2, content.text)
        elif isinstance(content, LabelContent):
            # empty inputs stay empty on the artifact
            return

    def _draw_table(self, c: canvas.Canvas, table: TableContent, x: float, y: float, page_h: float) -> None:
        c.setFont(self._font, max(4.0, table.font_size * self._pt))
        c.setLineWidth(0.5)
        for row in range(table.rows):
            for col in range(table.cols):
                cell = table.cell_rect(row, col)
                left, bottom, width, height = self._box(x + cell.x, y + cell.y, cell.width, cell.height, page_h)
                c.rect(left, bottom, width, height)
                text = table.cells[row][col] if row < len(table.cells) and col < len(table.cells[row]) else ""
                if text:
                    c.drawCentredString(left + width / 2, bottom + height / 2 - table.font_size * self._pt / 3, text)
