from __future__ import annotations

from dataclasses import dataclass

from .page import DEFAULT_PLACEMENT, MIN_FIELD_HEIGHT, MIN_FIELD_WIDTH


@dataclass(frozen=True, slots=True)
class FieldGeometry:
    """
    Position and size of a field in logical page pixels (origin top-left).

    The minimum-size / non-negative invariants are applied by ``create``,
    ``moved`` and ``resized`` only; geometry loaded from the server is taken
    as-is.
    """
    x: float
    y: float
    width: float
    height: float
    page: int = 1

    @classmethod
    def create(cls, x: float, y: float, width: float, height: float, page: int = 1) -> "FieldGeometry":
        return cls(
            x=max(0.0, float(x)),
            y=max(0.0, float(y)),
            width=max(float(MIN_FIELD_WIDTH), float(width)),
            height=max(float(MIN_FIELD_HEIGHT), float(height)),
            page=max(1, int(page)),
        )

    @classmethod
    def default(cls, page: int = 1) -> "FieldGeometry":
        x, y, w, h = DEFAULT_PLACEMENT
        return cls.create(x, y, w, h, page)

    def moved(self, dx: float, dy: float) -> "FieldGeometry":
        """Translate by a pointer delta; clamps at the top/left page edge only."""
        return FieldGeometry(
            x=max(0.0, self.x + dx),
            y=max(0.0, self.y + dy),
            width=self.width,
            height=self.height,
            page=self.page,
        )

    def resized(self, dw: float, dh: float) -> "FieldGeometry":
        """Grow/shrink from the bottom-right corner, never below the minimum size."""
        return FieldGeometry(
            x=self.x,
            y=self.y,
            width=max(float(MIN_FIELD_WIDTH), self.width + dw),
            height=max(float(MIN_FIELD_HEIGHT), self.height + dh),
            page=self.page,
        )
