# signature/logic/drawing_surface.py
from __future__ import annotations

from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from core.helpers.image_data import encode_png

Point = Tuple[float, float]
TRANSPARENT = (0, 0, 0, 0)


class DrawingSurface:
    """
    Transparent RGBA raster that ink is stroked onto.

    Each segment is drawn as soon as it arrives (fixed width, round caps and
    joins). ``clear`` wipes the pixels only; an open stroke keeps going.
    """

    def __init__(self, width: int, height: int, *, stroke_width: int = 3,
                 ink: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.stroke_width = max(1, int(stroke_width))
        self.ink = ink
        self._img = Image.new("RGBA", (self.width, self.height), TRANSPARENT)
        self._draw = ImageDraw.Draw(self._img)
        self._last: Optional[Point] = None
        self._dirty = False

    # -------- Strokes ------------------------------------------------------ #
    @property
    def is_stroking(self) -> bool:
        return self._last is not None

    @property
    def has_ink(self) -> bool:
        return self._dirty

    def begin_stroke(self, point: Point) -> None:
        self._last = point
        self._dot(point)

    def stroke_to(self, point: Point) -> None:
        if self._last is None:
            return
        self._draw.line([self._last, point], fill=self.ink, width=self.stroke_width)
        self._dot(point)
        self._last = point
        self._dirty = True

    def end_stroke(self) -> None:
        self._last = None

    def _dot(self, point: Point) -> None:
        # round cap/join: a filled disc of the stroke diameter at every vertex
        r = self.stroke_width / 2
        x, y = point
        self._draw.ellipse([x - r, y - r, x + r, y + r], fill=self.ink)
        self._dirty = True

    # -------- Whole-surface operations ------------------------------------ #
    def clear(self) -> None:
        self._img.paste(TRANSPARENT, (0, 0, self.width, self.height))
        self._dirty = False

    def draw_text(self, text: str, *, font_size: int = 24, font_path: Optional[str] = None) -> None:
        """Replace the surface with ``text`` centered on it."""
        self.clear()
        if not text.strip():
            return
        if font_path:
            font = ImageFont.truetype(font_path, font_size)
        else:
            font = ImageFont.load_default(size=font_size)
        self._draw.text((self.width / 2, self.height / 2), text, fill=self.ink, font=font, anchor="mm")
        self._dirty = True

    def draw_frame(self, frame: Image.Image) -> None:
        """Overwrite the surface with a captured frame scaled to its size."""
        self._img.paste(frame.convert("RGBA").resize((self.width, self.height)), (0, 0))
        self._dirty = True

    def replace(self, image: Image.Image) -> None:
        if image.size != (self.width, self.height):
            image = image.resize((self.width, self.height))
        self._img.paste(image.convert("RGBA"), (0, 0))
        self._dirty = True

    # -------- Export ------------------------------------------------------- #
    def to_image(self) -> Image.Image:
        return self._img.copy()

    def to_data_url(self) -> str:
        return encode_png(self._img)
