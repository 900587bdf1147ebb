from __future__ import annotations

import unittest

from PIL import Image

from core.helpers.image_data import encode_png
from fields.logic.overlay_renderer import (
    ELLIPSIS,
    AverageCharMeasurer,
    LabelContent,
    OverlayRenderer,
    PlaceholderContent,
    SignatureImageContent,
    TableContent,
    TextContent,
    Viewport,
    compute_scale,
    fit_image,
    page_display_size,
    fit_text,
)
from fields.models.coordinate_field import PlainField, SignatureSlotField, TableField
from fields.models.geometry import FieldGeometry
from fields.models.signature_placement import SignaturePlacement
from fields.models.table_data import TableData


class TestScale(unittest.TestCase):
    def test_scale_to_fit_never_enlarges(self) -> None:
        self.assertEqual(compute_scale(620), 0.5)
        self.assertEqual(compute_scale(1240), 1.0)
        self.assertEqual(compute_scale(4000), 1.0)
        self.assertEqual(compute_scale(0), 1.0)
        self.assertEqual(compute_scale(-10), 1.0)

    def test_rect_is_scaled_uniformly(self) -> None:
        f = PlainField("a", FieldGeometry(100, 200, 300, 40))
        item = OverlayRenderer().render([f], Viewport(620))[0]
        self.assertEqual((item.rect.x, item.rect.y, item.rect.width, item.rect.height), (50, 100, 150, 20))
        self.assertEqual(item.scale, 0.5)

    def test_raster_follows_the_logical_page_not_its_pixels(self) -> None:
        # a 300 dpi scan is twice the logical page; it still has to line up with the fields
        scan = Image.new("RGB", (2480, 3508))
        self.assertNotEqual(page_display_size(0.5), (scan.width // 2, scan.height // 2))
        self.assertEqual(page_display_size(0.5), (620, 877))
        self.assertEqual(page_display_size(1.0), (1240, 1754))
        self.assertEqual(page_display_size(0.0), (1, 1))

    def test_text_is_anchored_at_the_field_center(self) -> None:
        f = PlainField("a", FieldGeometry(100, 200, 300, 40), value="Alice")
        item = OverlayRenderer().render([f], Viewport(620))[0]
        self.assertEqual(item.rect.center, (125, 110))


class TestContent(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = OverlayRenderer(measurer=AverageCharMeasurer())

    def test_plain_value_and_label(self) -> None:
        g = FieldGeometry(0, 0, 400, 40)
        text, label = self.renderer.render(
            [PlainField("a", g, value="Alice"), PlainField("b", g, label="Name", required=True)],
            Viewport(1240),
        )
        self.assertIsInstance(text.content, TextContent)
        self.assertEqual(text.content.text, "Alice")
        self.assertIsInstance(label.content, LabelContent)
        self.assertEqual(label.content.text, "Name *")

    def test_long_text_gets_ellipsis(self) -> None:
        f = PlainField("a", FieldGeometry(0, 0, 60, 30), value="A rather long sentence that cannot fit")
        content = self.renderer.render([f], Viewport(1240))[0].content
        self.assertTrue(content.truncated)
        self.assertTrue(content.text.endswith(ELLIPSIS))

    def test_fit_text_keeps_short_text(self) -> None:
        self.assertEqual(fit_text("ok", 100, 12, AverageCharMeasurer()), ("ok", False))

    def test_column_widths_are_proportional_at_any_width(self) -> None:
        table = TableData(rows=2, cols=2, cells=(("a", "b"),), column_widths=(0.3, 0.7))
        f = TableField("t", FieldGeometry(0, 0, 1000, 100), table)
        for width in (1240, 620, 310):
            with self.subTest(width=width):
                content = self.renderer.render([f], Viewport(width))[0].content
                self.assertIsInstance(content, TableContent)
                w0, w1 = content.column_widths
                self.assertAlmostEqual(w0 / (w0 + w1), 0.3)
                self.assertEqual(content.cells, (("a", "b"), ("", "")))

    def test_uniform_columns_without_widths(self) -> None:
        f = TableField("t", FieldGeometry(0, 0, 300, 90), TableData.empty(3, 3))
        content = self.renderer.render([f], Viewport(1240))[0].content
        self.assertEqual(content.column_widths, (100.0, 100.0, 100.0))
        self.assertEqual(content.row_height, 30.0)
        self.assertEqual(content.cell_rect(1, 2).x, 200.0)

    def test_unsigned_slot_marks_viewer(self) -> None:
        slot = SignatureSlotField("s", FieldGeometry(0, 0, 200, 80), assignee_email="Me@Example.com",
                                  assignee_name="Me")
        mine = self.renderer.render([slot], Viewport(1240, viewer_email="me@example.com"))[0].content
        other = self.renderer.render([slot], Viewport(1240, viewer_email="you@example.com"))[0].content
        self.assertIsInstance(mine, PlaceholderContent)
        self.assertEqual(mine.text, "Me (unsigned) (you)")
        self.assertEqual(other.text, "Me (unsigned)")

    def test_signed_slot_image_is_fitted(self) -> None:
        data = encode_png(Image.new("RGBA", (400, 100)))
        slot = SignatureSlotField("s", FieldGeometry(0, 0, 200, 100), value=data)
        content = self.renderer.render([slot], Viewport(1240))[0].content
        self.assertIsInstance(content, SignatureImageContent)
        self.assertEqual((content.image_rect.width, content.image_rect.height), (200.0, 50.0))
        self.assertEqual(content.image_rect.y, 25.0)

    def test_fit_image_centers(self) -> None:
        r = fit_image(100, 100, 200, 50)
        self.assertEqual((r.x, r.y, r.width, r.height), (75.0, 0.0, 50.0, 50.0))


class TestFilteringAndOrder(unittest.TestCase):
    def test_only_current_page_in_input_order(self) -> None:
        fields = [
            PlainField("b", FieldGeometry(0, 0, 100, 30, page=1)),
            PlainField("x", FieldGeometry(0, 0, 100, 30, page=2)),
            PlainField("a", FieldGeometry(0, 0, 100, 30, page=1)),
        ]
        ids = [r.field_id for r in OverlayRenderer().render(fields, Viewport(1240, page=1))]
        self.assertEqual(ids, ["b", "a"])

    def test_placements_render_as_signer_regions(self) -> None:
        p = SignaturePlacement("p", FieldGeometry(0, 0, 200, 80), "s@example.com")
        item = OverlayRenderer().render_placements([p], Viewport(1240))[0]
        self.assertIsInstance(item.content, PlaceholderContent)
        self.assertEqual(item.content.name, "s@example.com")


if __name__ == "__main__":
    unittest.main()
