from __future__ import annotations

import asyncio
import io
import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk
from typing import Any, Callable, Coroutine, Dict, List, Optional, Set

from PIL import Image

from core.common.async_pump import AsyncPump
from core.config.config_service import config_service
from core.logging.logic.logger import logger
from documentlifecycle.exceptions.errors import DocumentLifecycleError, SessionExpiredError
from documentlifecycle.logic.services.document_session import DocumentSession
from documentlifecycle.models.document_status import DocumentStatus
from fields.gui.overlay_canvas import OverlayCanvas
from fields.exceptions.errors import FieldModelError
from fields.logic.artifact_exporter import ArtifactExporter
from fields.logic.page_locator import PageLocator, template_page_paths, total_pages
from fields.models.geometry import FieldGeometry
from signature.gui.signature_capture_dialog import SignatureCaptureDialog
from signature.logic.camera_capture import MediaDevices
from signature.logic.signature_vault import SignatureVault

_FEATURE = "DocumentView"


class DocumentView(ttk.Frame):
    """
    Document viewer: page raster with overlay, page navigation, status badge
    and the lifecycle actions the UI state allows.

    Coroutines run on ``loop`` through an AsyncPump driven by ``after`` ticks,
    so the window keeps repainting while a request is in flight. Results are
    applied in completion callbacks on the Tk thread. Action buttons are
    disabled until the pending call settles.
    """

    def __init__(
        self,
        parent: tk.Misc,
        session: DocumentSession,
        *,
        loop: asyncio.AbstractEventLoop,
        vault: Optional[SignatureVault] = None,
        devices: Optional[MediaDevices] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._loop = loop
        self._pump = AsyncPump(loop, self.after)
        self._vault = vault
        self._devices = devices
        self._locator = PageLocator(config_service.api.asset_base_url)
        self._page = 1
        self._page_cache: Dict[str, Optional[Image.Image]] = {}
        self._page_loading: Set[str] = set()
        self._pending_actions = 0

        self.columnconfigure(0, weight=1)
        self.rowconfigure(2, weight=1)

        # Header
        head = ttk.Frame(self)
        head.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 4))
        head.columnconfigure(1, weight=1)
        self._title = ttk.Label(head, text="", font=("Segoe UI", 12, "bold"))
        self._title.grid(row=0, column=0, sticky="w")
        self._badge = ttk.Label(head, text="", padding=(8, 2), relief="groove")
        self._badge.grid(row=0, column=2, sticky="e")
        self._hint = ttk.Label(head, text="", foreground="#555")
        self._hint.grid(row=1, column=0, columnspan=2, sticky="w")
        self._progress = ttk.Label(head, text="")
        self._progress.grid(row=1, column=2, sticky="e")

        # Actions
        bar = ttk.Frame(self)
        bar.grid(row=1, column=0, sticky="ew", padx=8)
        self._btn_prev = ttk.Button(bar, text="◀", width=3, command=lambda: self._goto(self._page - 1))
        self._btn_next = ttk.Button(bar, text="▶", width=3, command=lambda: self._goto(self._page + 1))
        self._page_label = ttk.Label(bar, text="")
        self._btn_prev.pack(side="left")
        self._page_label.pack(side="left", padx=6)
        self._btn_next.pack(side="left")

        self._buttons: Dict[str, ttk.Button] = {
            "assign": ttk.Button(bar, text="Assign reviewer…", command=self._assign_reviewer),
            "place": ttk.Button(bar, text="Add signer…", command=self._place_signer),
            "complete": ttk.Button(bar, text="Placement complete", command=self._complete_placement),
            "approve": ttk.Button(bar, text="Approve", command=self._approve),
            "sign": ttk.Button(bar, text="Sign", command=self._approve),
            "reject": ttk.Button(bar, text="Reject…", command=self._reject),
            "export": ttk.Button(bar, text="Export PDF…", command=self._export),
        }
        ttk.Button(bar, text="Reload", command=self.reload).pack(side="right")

        # Page + overlay
        self._canvas = OverlayCanvas(self, width=620, height=877, on_geometry=self._on_geometry)
        self._canvas.grid(row=2, column=0, sticky="nsew", padx=8, pady=8)

        self._error = ttk.Label(self, text="", foreground="#b00020")
        self._error.grid(row=3, column=0, sticky="ew", padx=8, pady=(0, 8))
        self.bind("<Destroy>", self._on_destroy, add="+")

    # ---------------- Async bridge
    def _run(self, coro: Coroutine[Any, Any, Any], then: Optional[Callable[[Any], None]] = None) -> None:
        """Start ``coro`` without waiting; ``then`` gets the result once it settles cleanly."""
        self._pump.submit(coro, lambda task: self._settle(task, then))
        self._pending_actions += 1
        self._set_busy(True)

    def _settle(self, task: "asyncio.Task[Any]", then: Optional[Callable[[Any], None]]) -> None:
        self._pending_actions -= 1
        if task.cancelled() or not self.winfo_exists():
            return
        self._set_busy(self._pending_actions > 0)
        exc = task.exception()
        if isinstance(exc, SessionExpiredError):
            messagebox.showwarning("Session", exc.user_message, parent=self)
            self.winfo_toplevel().destroy()
            return
        if isinstance(exc, DocumentLifecycleError):
            messagebox.showerror("Document", exc.user_message, parent=self)
            self.refresh_view()
            return
        if exc is not None:
            raise exc
        self.refresh_view()
        if then is not None:
            then(task.result())

    def _set_busy(self, busy: bool) -> None:
        for button in self._buttons.values():
            button.state(["disabled"] if busy else ["!disabled"])

    def _on_destroy(self, event) -> None:
        if event.widget is self:
            self._pump.close()

    # ---------------- Loading / drawing
    def open(self, document_id: Any) -> None:
        self._page = 1
        self._page_cache.clear()
        self._run(self._session.load(document_id))
        self.refresh_view()

    def reload(self) -> None:
        self._run(self._session.refresh())

    def refresh_view(self) -> None:
        state = self._session.ui_state
        doc = self._session.document
        self._badge.configure(text=state.status_text)
        self._hint.configure(text=state.assignment_hint)
        self._progress.configure(text=state.progress_text)
        self._error.configure(text=state.error_message)
        self._title.configure(text=doc.title if doc else "")

        visible = {
            "assign": state.show_assign_reviewer,
            "place": state.show_place_signatures,
            "complete": state.show_place_signatures and bool(self._drafts()),
            "approve": state.show_approve,
            "sign": state.show_sign,
            "reject": state.show_reject,
            "export": state.show_export,
        }
        for key, button in self._buttons.items():
            button.pack_forget()
            if visible[key]:
                button.pack(side="left", padx=(6, 0))

        if doc is None:
            self._page_label.configure(text="")
            self._canvas.show(page=1, viewer_email=None, page_image=None, fields=[], placements=[], drafts=[])
            return

        pages = total_pages(template_page_paths(doc.template), doc.data.coordinate_fields)
        self._page = max(1, min(self._page, pages))
        self._page_label.configure(text=f"Page {self._page} / {pages}")
        self._btn_prev.state(["!disabled"] if self._page > 1 else ["disabled"])
        self._btn_next.state(["!disabled"] if self._page < pages else ["disabled"])
        self._canvas.show(
            page=self._page,
            viewer_email=self._session.user.email,
            page_image=self._page_image(self._page),
            fields=doc.data.coordinate_fields,
            placements=doc.data.signature_fields,
            drafts=self._drafts(),
        )

    def _drafts(self):
        return self._session.placements.placements if self._session.placements else []

    def _goto(self, page: int) -> None:
        self._page = page
        self.refresh_view()

    def _page_url(self, page: int) -> Optional[str]:
        doc = self._session.document
        return self._locator.page_url(doc.template if doc else None, page)

    def _page_image(self, page: int) -> Optional[Image.Image]:
        """Cached raster; a miss starts a background fetch and redraws when it lands."""
        url = self._page_url(page)
        if url is None:
            return None
        if url not in self._page_cache and url not in self._page_loading:
            self._page_loading.add(url)
            self._pump.submit(self._fetch_page(url), lambda _task: self._page_loaded(url))
        return self._page_cache.get(url)

    def _page_loaded(self, url: str) -> None:
        self._page_loading.discard(url)
        if self.winfo_exists() and url == self._page_url(self._page):
            self.refresh_view()

    async def _fetch_page(self, url: str) -> None:
        try:
            raw = await self._session.fetch_asset(url)
            self._page_cache[url] = Image.open(io.BytesIO(raw)).convert("RGB")
        except (DocumentLifecycleError, OSError) as exc:
            logger.log(_FEATURE, "PageImageFailed", level="WARNING", reference_id=url, message=str(exc))
            self._page_cache[url] = None

    async def _all_pages(self, pages: int) -> List[Optional[Image.Image]]:
        out: List[Optional[Image.Image]] = []
        for page in range(1, pages + 1):
            url = self._page_url(page)
            if url is not None and url not in self._page_cache:
                await self._fetch_page(url)
            out.append(self._page_cache.get(url) if url is not None else None)
        return out

    # ---------------- Placement
    def _place_signer(self) -> None:
        email = simpledialog.askstring("Add signer", "Signer e-mail:", parent=self)
        if not email or not email.strip() or self._session.placements is None:
            return
        name = simpledialog.askstring("Add signer", "Signer name (optional):", parent=self)
        try:
            self._session.placements.place(email.strip(), (name or "").strip() or None, page=self._page)
        except FieldModelError as exc:
            self._error.configure(text=str(exc))
            return
        self.refresh_view()

    def _on_geometry(self, field_id: str, geometry: FieldGeometry) -> None:
        if self._session.placements is None:
            return
        try:
            placement = self._session.placements.set_geometry(field_id, geometry)
        except FieldModelError as exc:
            logger.log(_FEATURE, "PlacementEditRefused", level="WARNING", reference_id=field_id, message=str(exc))
            self._error.configure(text=str(exc))
            return
        self._canvas.update_draft(placement)

    def _complete_placement(self) -> None:
        self._run(self._session.complete_placement())

    # ---------------- Lifecycle actions
    def _assign_reviewer(self) -> None:
        email = simpledialog.askstring("Assign reviewer", "Reviewer e-mail:", parent=self)
        if not email:
            return
        self._run(self._session.assign_reviewer(email))

    def _approve(self) -> None:
        dlg = SignatureCaptureDialog(self, signer_name=self._session.user.display_name,
                                     vault=self._vault, devices=self._devices)
        self.wait_window(dlg)
        if not dlg.result:
            return
        self._run(self._session.approve(dlg.result))

    def _reject(self) -> None:
        reason = simpledialog.askstring("Reject", "Reason:", parent=self)
        if reason is None:
            return
        if not reason.strip():
            messagebox.showinfo("Reject", "A reason is required.", parent=self)
            return
        self._run(self._session.reject(reason))

    def _export(self) -> None:
        doc = self._session.document
        if doc is None or doc.status != DocumentStatus.COMPLETED:
            return
        target = filedialog.asksaveasfilename(parent=self, defaultextension=".pdf",
                                              initialfile=f"{doc.title or doc.id}.pdf",
                                              filetypes=[("PDF", "*.pdf")])
        if not target:
            return
        pages = total_pages(template_page_paths(doc.template), doc.data.coordinate_fields)

        def write(rasters: List[Optional[Image.Image]]) -> None:
            ArtifactExporter().export_to(target, rasters, doc.data.coordinate_fields,
                                         doc.data.signature_fields, title=doc.title)
            messagebox.showinfo("Export", f"Saved to {target}", parent=self)

        self._run(self._all_pages(pages), write)


class DocumentWindow(tk.Tk):
    """Top-level window hosting one DocumentView."""

    def __init__(self, session: DocumentSession, *, loop: asyncio.AbstractEventLoop,
                 vault: Optional[SignatureVault] = None, devices: Optional[MediaDevices] = None) -> None:
        super().__init__()
        self.title(f"Document – {session.user.display_name}")
        self.geometry("720x1000")
        self.view = DocumentView(self, session, loop=loop, vault=vault, devices=devices)
        self.view.pack(fill="both", expand=True)
