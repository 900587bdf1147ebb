from __future__ import annotations

import tkinter as tk
from typing import Callable, Dict, List, Optional

from PIL import Image, ImageTk

from core.helpers.image_data import decode_image
from fields.logic.interaction import (
    IDLE,
    InteractionState,
    PointerAction,
    PointerDown,
    PointerLeave,
    PointerMove,
    PointerUp,
    reduce,
    to_page_point,
)
from fields.logic.overlay_renderer import (
    LabelContent,
    OverlayRenderer,
    PlaceholderContent,
    RenderedField,
    SignatureImageContent,
    TableContent,
    TextContent,
    Viewport,
    page_display_size,
)
from fields.models.coordinate_field import CoordinateField
from fields.models.geometry import FieldGeometry
from fields.models.signature_placement import SignaturePlacement

HANDLE = 8
FIELD_OUTLINE = "#4a7bd0"
DRAFT_OUTLINE = "#d07a1a"
PLACEHOLDER_FILL = "#fff6d5"


class OverlayCanvas(tk.Canvas):
    """
    Page raster plus field overlay.

    Persisted fields are drawn read-only. Draft placements (the ones returned
    by ``editable``) can be dragged by their body and resized by the handle in
    the bottom-right corner; geometry changes go to ``on_geometry``.
    """

    def __init__(
        self,
        parent: tk.Misc,
        *,
        renderer: Optional[OverlayRenderer] = None,
        on_geometry: Optional[Callable[[str, FieldGeometry], None]] = None,
        **kw,
    ) -> None:
        kw.setdefault("bg", "#f8f8f8")
        kw.setdefault("highlightthickness", 0)
        super().__init__(parent, **kw)
        self._renderer = renderer or OverlayRenderer()
        self._on_geometry = on_geometry
        self._state: InteractionState = IDLE
        self._viewport = Viewport(container_width=float(kw.get("width", 620)))

        self._page_image: Optional[Image.Image] = None
        self._page_tk: Optional[ImageTk.PhotoImage] = None
        self._image_refs: List[ImageTk.PhotoImage] = []   # keep Tk images alive

        self._fields: List[CoordinateField] = []
        self._placements: List[SignaturePlacement] = []
        self._drafts: Dict[str, SignaturePlacement] = {}

        self.bind("<Configure>", self._on_configure)
        self.bind("<ButtonPress-1>", self._on_press)
        self.bind("<B1-Motion>", self._on_motion)
        self.bind("<ButtonRelease-1>", self._on_release)
        self.bind("<Leave>", self._on_leave)

    # ---------------- Content
    def show(
        self,
        *,
        page: int,
        viewer_email: Optional[str],
        page_image: Optional[Image.Image],
        fields: List[CoordinateField],
        placements: List[SignaturePlacement],
        drafts: List[SignaturePlacement],
    ) -> None:
        self._viewport = Viewport(self._viewport.container_width, page, viewer_email)
        self._page_image = page_image
        self._fields = list(fields)
        self._placements = list(placements)
        self._drafts = {p.id: p for p in drafts}
        self.redraw()

    def update_draft(self, placement: SignaturePlacement) -> None:
        self._drafts[placement.id] = placement
        self.redraw()

    @property
    def interaction(self) -> InteractionState:
        return self._state

    # ---------------- Drawing
    def redraw(self) -> None:
        self.delete("all")
        self._image_refs.clear()
        scale = self._viewport.scale
        if self._page_image is not None:
            w, h = page_display_size(scale)
            self._page_tk = ImageTk.PhotoImage(self._page_image.resize((w, h)))
            self.create_image(0, 0, image=self._page_tk, anchor="nw")
            self.configure(scrollregion=(0, 0, w, h))

        for item in self._renderer.render(self._fields, self._viewport):
            self._draw_item(item, FIELD_OUTLINE, editable=False)
        for item in self._renderer.render_placements(self._placements, self._viewport):
            self._draw_item(item, FIELD_OUTLINE, editable=False)
        for item in self._renderer.render_placements(self._drafts.values(), self._viewport):
            self._draw_item(item, DRAFT_OUTLINE, editable=True)

    def _draw_item(self, item: RenderedField, outline: str, *, editable: bool) -> None:
        r = item.rect
        x1, y1 = r.x + r.width, r.y + r.height
        tags = ("field", f"id:{item.field_id}") + (("draft",) if editable else ())
        content = item.content
        fill = PLACEHOLDER_FILL if isinstance(content, PlaceholderContent) else ""
        self.create_rectangle(r.x, r.y, x1, y1, outline=outline, fill=fill, dash=(3, 2) if editable else None,
                              tags=tags)

        if isinstance(content, TextContent):
            self.create_text(*r.center, text=content.text, width=max(1.0, r.width - 4),
                             font=(content.font_family, max(1, int(content.font_size))), tags=tags)
        elif isinstance(content, LabelContent):
            self.create_text(*r.center, text=content.text, width=max(1.0, r.width - 4),
                             fill="#777", font=("Helvetica", max(1, int(content.font_size))), tags=tags)
        elif isinstance(content, TableContent):
            self._draw_table(r.x, r.y, content, tags)
        elif isinstance(content, SignatureImageContent):
            self._draw_signature(r.x, r.y, content, tags)
        elif isinstance(content, PlaceholderContent):
            self.create_text(*r.center, text=content.text, fill="#8a6d00",
                             width=max(1.0, r.width - 4), tags=tags)

        if editable:
            self.create_rectangle(x1 - HANDLE, y1 - HANDLE, x1, y1, fill=outline, outline="",
                                  tags=tags + ("handle",))

    def _draw_table(self, x: float, y: float, table: TableContent, tags) -> None:
        font = ("Helvetica", max(1, int(table.font_size)))
        for row, line in enumerate(table.cells):
            for col, text in enumerate(line):
                cell = table.cell_rect(row, col)
                self.create_rectangle(x + cell.x, y + cell.y, x + cell.x + cell.width, y + cell.y + cell.height,
                                      outline="#999", tags=tags)
                if text:
                    self.create_text(x + cell.x + 2, y + cell.y + cell.height / 2, text=text, anchor="w",
                                     font=font, width=max(1.0, cell.width - 4), tags=tags)

    def _draw_signature(self, x: float, y: float, content: SignatureImageContent, tags) -> None:
        box = content.image_rect
        try:
            image = decode_image(content.data)
        except ValueError:
            self.create_text(x + box.width / 2, y + box.height / 2, text="?", tags=tags)
            return
        image = image.resize((max(1, int(box.width)), max(1, int(box.height))))
        tk_img = ImageTk.PhotoImage(image)
        self._image_refs.append(tk_img)
        self.create_image(x + box.x, y + box.y, image=tk_img, anchor="nw", tags=tags)

    # ---------------- Pointer
    def _hit(self, event) -> tuple[Optional[str], PointerAction]:
        for item in reversed(self.find_overlapping(event.x, event.y, event.x, event.y)):
            tags = self.gettags(item)
            if "draft" not in tags:
                continue
            field_id = next((t[3:] for t in tags if t.startswith("id:")), None)
            action = PointerAction.RESIZE if "handle" in tags else PointerAction.DRAG
            return field_id, action
        return None, PointerAction.DRAG

    def _page_point(self, event) -> tuple[float, float]:
        return to_page_point(self.canvasx(event.x), self.canvasy(event.y), self._viewport.scale)

    def _on_press(self, event) -> None:
        field_id, action = self._hit(event)
        if field_id is None or field_id not in self._drafts:
            return
        down = PointerDown(field_id, action, self._page_point(event), self._drafts[field_id].geometry)
        self._state, _ = reduce(self._state, down)

    def _on_motion(self, event) -> None:
        self._state, update = reduce(self._state, PointerMove(self._page_point(event)))
        if update is None:
            return
        if self._on_geometry is not None:
            self._on_geometry(update.field_id, update.geometry)

    def _on_release(self, _event) -> None:
        self._state, _ = reduce(self._state, PointerUp())

    def _on_leave(self, _event) -> None:
        self._state, _ = reduce(self._state, PointerLeave())

    def _on_configure(self, event) -> None:
        width = float(event.width)
        if width > 0 and width != self._viewport.container_width:
            v = self._viewport
            self._viewport = Viewport(width, v.page, v.viewer_email)
            self.redraw()
