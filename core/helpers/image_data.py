"""
image_data.py

Conversion between Pillow images and image-data strings
(``data:image/png;base64,...``), the format signatures travel in.
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

PNG_PREFIX = "data:image/png;base64,"


def encode_png(image: Image.Image) -> str:
    """Serialize ``image`` as a PNG image-data string."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return PNG_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")


def decode_bytes(data: str) -> Tuple[bytes, Optional[str]]:
    """
    Split an image-data string into raw bytes and its mime type.
    Bare base64 (no ``data:`` header) is accepted; mime is then None.

    Raises ``ValueError`` on malformed input.
    """
    text = (data or "").strip()
    if not text:
        raise ValueError("empty image data")
    mime: Optional[str] = None
    encoded = text
    if text.startswith("data:"):
        try:
            header, encoded = text.split(",", 1)
        except ValueError as exc:
            raise ValueError("image data without payload") from exc
        if ";base64" not in header:
            raise ValueError("image data must be base64 encoded")
        mime = header.split(";", 1)[0].split(":", 1)[1] or None
    try:
        return base64.b64decode(encoded, validate=True), mime
    except (binascii.Error, ValueError) as exc:
        raise ValueError("invalid base64 image data") from exc


def decode_image(data: str) -> Image.Image:
    """Open an image-data string as a Pillow image (fully loaded)."""
    raw, _ = decode_bytes(data)
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("image data is not a readable image") from exc
    return img


def image_size(data: str) -> Optional[Tuple[int, int]]:
    """Pixel size of an image-data string, None if it cannot be read."""
    try:
        return decode_image(data).size
    except ValueError:
        return None


def is_image_data(value: Optional[str]) -> bool:
    return bool(value) and value.strip().startswith("data:image/")
