from __future__ import annotations

# Logical page raster; every field coordinate is expressed against it.
PAGE_WIDTH = 1240
PAGE_HEIGHT = 1754

MIN_FIELD_WIDTH = 50
MIN_FIELD_HEIGHT = 30

# Geometry of a freshly placed field (x, y, width, height).
DEFAULT_PLACEMENT = (100, 100, 200, 80)

DEFAULT_FONT_SIZE = 12
DEFAULT_FONT_FAMILY = "Arial"
