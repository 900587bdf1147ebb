from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class TableData:
    """
    Content of a table field: ``rows × cols`` grid of cell strings.

    ``cells`` may be ragged or shorter than the declared grid; ``cell()``
    fills the gaps with empty strings. ``column_widths`` are fractions of the
    field width, one per column, not necessarily summing to 1.
    """
    rows: int
    cols: int
    cells: Tuple[Tuple[str, ...], ...] = ()
    column_widths: Optional[Tuple[float, ...]] = field(default=None)

    def cell(self, row: int, col: int) -> str:
        if row < 0 or col < 0 or row >= len(self.cells):
            return ""
        line = self.cells[row]
        if col >= len(line):
            return ""
        return line[col]

    def grid(self) -> List[List[str]]:
        """Full ``rows × cols`` text grid."""
        return [[self.cell(r, c) for c in range(max(0, self.cols))] for r in range(max(0, self.rows))]

    def with_cell(self, row: int, col: int, text: str) -> "TableData":
        grid = self.grid()
        grid[row][col] = text
        return TableData(
            rows=self.rows,
            cols=self.cols,
            cells=tuple(tuple(line) for line in grid),
            column_widths=self.column_widths,
        )

    def usable_column_widths(self) -> Optional[Tuple[float, ...]]:
        """
        ``column_widths`` if they describe every column with fractions in
        (0, 1], otherwise None (caller falls back to uniform widths).
        """
        widths = self.column_widths
        if not widths or len(widths) != self.cols:
            return None
        if any(not (0.0 < w <= 1.0) for w in widths):
            return None
        return widths

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "rows": self.rows,
            "cols": self.cols,
            "cells": [list(line) for line in self.cells],
        }
        if self.column_widths is not None:
            data["columnWidths"] = list(self.column_widths)
        return data

    @classmethod
    def empty(cls, rows: int, cols: int) -> "TableData":
        return cls(rows=rows, cols=cols, cells=tuple(tuple("" for _ in range(cols)) for _ in range(rows)))
