# signature/logic/signature_pad.py
"""
Freehand/text signature session.

The drawing surface is sized once, when the session opens, to the display
area it is shown in; pointer positions are mapped display -> surface with the
ratio computed at that moment. A display resize later in the session does not
rescale the surface, so strokes drawn afterwards land offset (known behavior).
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from core.logging.logic.logger import logger
from ..models.signature_config import SignatureConfig
from .drawing_surface import DrawingSurface
from .signature_vault import SignatureVault

_FEATURE = "SignaturePad"


class PadMode(str, Enum):
    DRAW = "draw"
    TEXT = "text"


class FreehandSession:
    """One open signature modal: surface, pointer state and save."""

    def __init__(
        self,
        display_size: Tuple[float, float],
        *,
        config: Optional[SignatureConfig] = None,
        surface_size: Optional[Tuple[int, int]] = None,
        vault: Optional[SignatureVault] = None,
    ) -> None:
        self._cfg = config or SignatureConfig()
        disp_w, disp_h = display_size
        if surface_size is None:
            surface_size = (int(round(disp_w)) or self._cfg.surface_width,
                            int(round(disp_h)) or self._cfg.surface_height)
        self.surface = DrawingSurface(
            surface_size[0], surface_size[1],
            stroke_width=self._cfg.stroke_width, ink=self._cfg.ink_rgba,
        )
        # fixed for the whole session
        self._ratio_x = self.surface.width / disp_w if disp_w > 0 else 1.0
        self._ratio_y = self.surface.height / disp_h if disp_h > 0 else 1.0
        self._display_size = (disp_w, disp_h)
        self._vault = vault
        self.mode = PadMode.DRAW
        self.text = ""

    # -------- Mapping ------------------------------------------------------ #
    @property
    def ratio(self) -> Tuple[float, float]:
        return self._ratio_x, self._ratio_y

    def to_surface(self, x: float, y: float) -> Tuple[float, float]:
        return x * self._ratio_x, y * self._ratio_y

    def display_resized(self, width: float, height: float) -> None:
        """Record the new display size; the mapping ratio stays as opened."""
        self._display_size = (width, height)

    # -------- Pointer input (display coordinates) -------------------------- #
    def pointer_down(self, x: float, y: float) -> None:
        if self.mode is not PadMode.DRAW:
            return
        self.surface.begin_stroke(self.to_surface(x, y))

    def pointer_move(self, x: float, y: float) -> None:
        if self.mode is PadMode.DRAW and self.surface.is_stroking:
            self.surface.stroke_to(self.to_surface(x, y))

    def pointer_up(self) -> None:
        self.surface.end_stroke()

    pointer_leave = pointer_up

    # -------- Modes -------------------------------------------------------- #
    def set_mode(self, mode: PadMode) -> None:
        if mode is self.mode:
            return
        self.mode = mode
        self.text = ""
        self.surface.end_stroke()
        self.surface.clear()

    def set_text(self, text: str) -> None:
        """Text mode: the typed name, centered, is the signature."""
        self.mode = PadMode.TEXT
        self.text = text
        self.surface.draw_text(text, font_size=self._cfg.text_font_size)

    def clear(self) -> None:
        self.surface.clear()
        if self.mode is PadMode.TEXT:
            self.text = ""

    @property
    def is_empty(self) -> bool:
        return not self.surface.has_ink

    # -------- Save --------------------------------------------------------- #
    def save(self, *, name: Optional[str] = None) -> str:
        """
        Serialize the surface to an image-data string.

        With ``name`` the image is also stored in the vault; a vault failure
        is logged and does not affect the returned value.
        """
        data = self.surface.to_data_url()
        if name and self._vault is not None:
            try:
                self._vault.add(name, data)
            except Exception as exc:  # noqa: BLE001
                logger.log(_FEATURE, "VaultSaveFailed", level="WARNING", message=str(exc))
        return data
