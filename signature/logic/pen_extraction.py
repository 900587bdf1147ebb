# signature/logic/pen_extraction.py
"""
Pen extraction: turn a photographed signature into pure black ink on white.

Per pixel, luminance ``0.299R + 0.587G + 0.114B`` above the threshold becomes
opaque white, everything else opaque black. Alpha of the input is ignored and
every output pixel is opaque, so the operation is total and idempotent.
"""
from __future__ import annotations

from PIL import Image

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
DEFAULT_THRESHOLD = 130


def is_light(r: int, g: int, b: int, threshold: int = DEFAULT_THRESHOLD) -> bool:
    # integer form of 0.299R + 0.587G + 0.114B > threshold
    return 299 * r + 587 * g + 114 * b > threshold * 1000


def extract_pen(image: Image.Image, threshold: int = DEFAULT_THRESHOLD) -> Image.Image:
    """New RGBA image of the same size; the input is not modified."""
    src = image.convert("RGBA")
    out = Image.new("RGBA", src.size)
    out.putdata([
        WHITE if is_light(r, g, b, threshold) else BLACK
        for (r, g, b, _a) in src.getdata()
    ])
    return out
