from __future__ import annotations

import unittest

from fields.models.coordinate_field import PlainField, SignatureSlotField, with_geometry
from fields.models.field_kind import FieldKind
from fields.models.geometry import FieldGeometry
from fields.models.table_data import TableData


class TestFieldGeometry(unittest.TestCase):
    def test_resize_never_below_minimum(self) -> None:
        g = FieldGeometry.default().resized(-1000, -1000)
        self.assertEqual((g.width, g.height), (50.0, 30.0))
        self.assertEqual((g.x, g.y), (100.0, 100.0))

    def test_drag_clamps_at_page_origin(self) -> None:
        g = FieldGeometry.default().moved(-150, -150)
        self.assertEqual((g.x, g.y), (0.0, 0.0))
        self.assertEqual((g.width, g.height), (200.0, 80.0))

    def test_drag_does_not_clamp_right_or_bottom(self) -> None:
        g = FieldGeometry.default().moved(5000, 5000)
        self.assertEqual((g.x, g.y), (5100.0, 5100.0))

    def test_create_clamps_inputs(self) -> None:
        g = FieldGeometry.create(-5, -5, 10, 10, page=0)
        self.assertEqual(g, FieldGeometry(0.0, 0.0, 50.0, 30.0, 1))

    def test_default_keeps_page(self) -> None:
        self.assertEqual(FieldGeometry.default(page=3).page, 3)


class TestTableData(unittest.TestCase):
    def test_ragged_cells_fill_with_empty_strings(self) -> None:
        table = TableData(rows=2, cols=3, cells=(("a",), ("b", "c", "d", "extra")))
        self.assertEqual(table.grid(), [["a", "", ""], ["b", "c", "d"]])
        self.assertEqual(table.cell(5, 0), "")
        self.assertEqual(table.cell(0, -1), "")

    def test_with_cell_returns_full_grid(self) -> None:
        table = TableData.empty(2, 2).with_cell(1, 1, "x")
        self.assertEqual(table.cells, (("", ""), ("", "x")))

    def test_usable_column_widths(self) -> None:
        self.assertEqual(TableData(1, 2, column_widths=(0.3, 0.7)).usable_column_widths(), (0.3, 0.7))
        self.assertIsNone(TableData(1, 2, column_widths=(0.3,)).usable_column_widths())
        self.assertIsNone(TableData(1, 2, column_widths=(0.0, 1.0)).usable_column_widths())
        self.assertIsNone(TableData(1, 2, column_widths=(0.5, 1.5)).usable_column_widths())
        self.assertIsNone(TableData(1, 2).usable_column_widths())


class TestFieldVariants(unittest.TestCase):
    def test_kinds(self) -> None:
        g = FieldGeometry.default()
        self.assertIs(PlainField("a", g).kind, FieldKind.PLAIN)
        slot = SignatureSlotField("b", g, slot_kind=FieldKind.EDITOR_SIGNATURE)
        self.assertIs(slot.kind, FieldKind.EDITOR_SIGNATURE)
        self.assertFalse(slot.is_signed)

    def test_with_geometry_keeps_content(self) -> None:
        f = PlainField("a", FieldGeometry.default(), label="Name", value="Alice")
        moved = with_geometry(f, f.geometry.moved(10, 0))
        self.assertEqual(moved.value, "Alice")
        self.assertEqual(moved.geometry.x, 110.0)

    def test_kind_parse(self) -> None:
        self.assertIs(FieldKind.parse("Reviewer_Signature"), FieldKind.REVIEWER_SIGNATURE)
        self.assertIs(FieldKind.parse(None), FieldKind.PLAIN)
        self.assertIs(FieldKind.parse("checkbox"), FieldKind.PLAIN)
        self.assertTrue(FieldKind.REVIEWER_SIGNATURE.is_signer_slot)
        self.assertFalse(FieldKind.EDITOR_SIGNATURE.is_signer_slot)


if __name__ == "__main__":
    unittest.main()
