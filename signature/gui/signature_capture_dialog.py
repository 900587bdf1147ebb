# signature/gui/signature_capture_dialog.py
from __future__ import annotations
import asyncio
import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from typing import Optional

from PIL import ImageTk

from core.helpers.image_data import decode_image
from ..exceptions.errors import CaptureError
from ..logic.camera_capture import CameraCapture, MediaDevices
from ..logic.signature_pad import FreehandSession, PadMode
from ..logic.signature_vault import SignatureVault
from ..models.signature_config import SignatureConfig


class SignatureCaptureDialog(tk.Toplevel):
    """
    Signature modal: freehand ink, typed text, camera capture or a saved
    signature from the vault. ``result`` holds the image-data string after
    "Use signature", None when cancelled.
    """

    def __init__(self, parent: tk.Misc, *, signer_name: str = "", vault: Optional[SignatureVault] = None,
                 devices: Optional[MediaDevices] = None, config: Optional[SignatureConfig] = None) -> None:
        super().__init__(parent)
        self.title("Sign")
        self.transient(parent)
        self.grab_set()
        self.resizable(False, False)

        self._cfg = config or SignatureConfig.from_settings()
        self._vault = vault
        self._devices = devices
        self.result: Optional[str] = None
        self._preview = None
        self._last: Optional[tuple] = None

        self.columnconfigure(0, weight=1)
        if signer_name:
            ttk.Label(self, text=f"{signer_name}, please sign below").grid(row=0, column=0, sticky="w", padx=10, pady=(10, 0))

        # Toolbar
        bar = ttk.Frame(self)
        bar.grid(row=1, column=0, sticky="ew", padx=10, pady=(10, 4))
        self._mode = tk.StringVar(value=PadMode.DRAW.value)
        ttk.Radiobutton(bar, text="Draw", value=PadMode.DRAW.value, variable=self._mode,
                        command=self._on_mode).pack(side="left")
        ttk.Radiobutton(bar, text="Type", value=PadMode.TEXT.value, variable=self._mode,
                        command=self._on_mode).pack(side="left", padx=(6, 12))
        self._text = tk.StringVar(value="")
        self._text_entry = ttk.Entry(bar, textvariable=self._text, width=28, state="disabled")
        self._text_entry.pack(side="left")
        self._text.trace_add("write", lambda *_: self._on_text())
        ttk.Button(bar, text="Clear", command=self._clear).pack(side="left", padx=(12, 0))
        if devices is not None:
            ttk.Button(bar, text="Camera…", command=self._capture_camera).pack(side="left", padx=(6, 0))

        # Canvas
        self.canvas = tk.Canvas(
            self, width=self._cfg.surface_width, height=self._cfg.surface_height, bg="white",
            highlightthickness=1, highlightbackground="#888"
        )
        self.canvas.grid(row=2, column=0, sticky="nsew", padx=10, pady=4)
        self.canvas.bind("<ButtonPress-1>", self._on_down)
        self.canvas.bind("<B1-Motion>", self._on_move)
        self.canvas.bind("<ButtonRelease-1>", self._on_up)
        self.canvas.bind("<Leave>", self._on_up)
        self.update_idletasks()
        display = (self.canvas.winfo_width() or self._cfg.surface_width,
                   self.canvas.winfo_height() or self._cfg.surface_height)
        self._session = FreehandSession(display, config=self._cfg, vault=vault)

        # Vault
        if vault is not None:
            vrow = ttk.Frame(self)
            vrow.grid(row=3, column=0, sticky="ew", padx=10, pady=4)
            ttk.Label(vrow, text="Saved:").pack(side="left")
            self._saved = ttk.Combobox(vrow, state="readonly", width=30)
            self._saved.pack(side="left", padx=(6, 6))
            ttk.Button(vrow, text="Use", command=self._use_saved).pack(side="left")
            ttk.Button(vrow, text="Delete", command=self._delete_saved).pack(side="left", padx=(6, 0))
            self._refresh_saved()

        # Footer
        btns = ttk.Frame(self)
        btns.grid(row=4, column=0, sticky="e", padx=10, pady=(4, 10))
        ttk.Button(btns, text="Cancel", command=self.destroy).pack(side="right", padx=(6, 0))
        ttk.Button(btns, text="Use signature", command=self._save).pack(side="right")

    # Canvas handlers
    def _on_down(self, e):
        if self._session.mode is not PadMode.DRAW:
            return
        self._session.pointer_down(e.x, e.y)
        self._last = (e.x, e.y)

    def _on_move(self, e):
        if self._last is None:
            return
        self._session.pointer_move(e.x, e.y)
        self.canvas.create_line(*self._last, e.x, e.y, fill="black",
                                width=self._cfg.stroke_width, capstyle="round", joinstyle="round")
        self._last = (e.x, e.y)

    def _on_up(self, _e=None):
        self._session.pointer_up()
        self._last = None

    # Actions
    def _on_mode(self):
        mode = PadMode(self._mode.get())
        self._session.set_mode(mode)
        self.canvas.delete("all")
        self._text_entry.configure(state="normal" if mode is PadMode.TEXT else "disabled")
        if mode is PadMode.DRAW:
            self._text.set("")

    def _on_text(self):
        if self._session.mode is not PadMode.TEXT:
            return
        self._session.set_text(self._text.get())
        self._show_surface()

    def _show_surface(self):
        self.canvas.delete("all")
        self._preview = ImageTk.PhotoImage(self._session.surface.to_image())
        self.canvas.create_image(0, 0, image=self._preview, anchor="nw")

    def _clear(self):
        self._session.clear()
        self.canvas.delete("all")
        if self._session.mode is PadMode.TEXT:
            self._text.set("")

    def _capture_camera(self):
        capture = CameraCapture(self._devices, config=self._cfg)
        try:
            asyncio.run(capture.capture(self._session.surface))
        except CaptureError as exc:
            messagebox.showerror(title="Camera", message=exc.user_message, parent=self)
            return
        finally:
            capture.release()
        self._show_surface()

    def _refresh_saved(self):
        entries = self._vault.list() if self._vault else []
        self._saved_ids = [e.id for e in entries]
        self._saved.configure(values=[f"{e.name} ({e.created_at[:10]})" for e in entries])

    def _selected_saved(self):
        idx = self._saved.current()
        if idx < 0 or idx >= len(self._saved_ids):
            return None
        return self._vault.get(self._saved_ids[idx])

    def _use_saved(self):
        entry = self._selected_saved()
        if entry is None:
            return
        try:
            self._session.surface.replace(decode_image(entry.data))
        except ValueError:
            messagebox.showerror(title="Signature", message="The saved signature cannot be read.", parent=self)
            return
        self._show_surface()

    def _delete_saved(self):
        entry = self._selected_saved()
        if entry is not None and self._vault.remove(entry.id):
            self._refresh_saved()

    def _save(self):
        if self._session.is_empty:
            messagebox.showwarning(title="Signature", message="Please sign first.", parent=self)
            return
        name = None
        if self._vault is not None and messagebox.askyesno(
            title="Signature", message="Also keep this signature for later?", parent=self
        ):
            name = simpledialog.askstring("Signature", "Name:", parent=self)
        self.result = self._session.save(name=name)
        self.destroy()
