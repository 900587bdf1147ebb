from __future__ import annotations

import unittest

from PIL import Image

from core.helpers.image_data import decode_image
from signature.logic.drawing_surface import DrawingSurface
from signature.logic.pen_extraction import BLACK, WHITE, extract_pen, is_light


class TestPenExtraction(unittest.TestCase):
    def test_threshold_boundary(self) -> None:
        self.assertFalse(is_light(130, 130, 130))   # exactly 130 is not above
        self.assertTrue(is_light(131, 131, 131))
        self.assertTrue(is_light(255, 255, 0))      # yellow is light
        self.assertFalse(is_light(0, 0, 255))       # blue is dark

    def test_every_pixel_becomes_opaque_black_or_white(self) -> None:
        img = Image.new("RGBA", (4, 1))
        img.putdata([(10, 10, 10, 0), (250, 250, 250, 10), (200, 40, 40, 255), (140, 140, 140, 128)])
        out = extract_pen(img)
        self.assertEqual(list(out.getdata()), [BLACK, WHITE, BLACK, WHITE])
        self.assertEqual(img.getpixel((0, 0)), (10, 10, 10, 0))

    def test_idempotent(self) -> None:
        img = Image.effect_noise((16, 16), 80).convert("RGB")
        once = extract_pen(img)
        twice = extract_pen(once)
        self.assertEqual(list(once.getdata()), list(twice.getdata()))

    def test_other_modes_are_accepted(self) -> None:
        out = extract_pen(Image.new("L", (3, 3), 200))
        self.assertEqual(out.mode, "RGBA")
        self.assertEqual(set(out.getdata()), {WHITE})


class TestDrawingSurface(unittest.TestCase):
    def test_stroke_leaves_ink(self) -> None:
        s = DrawingSurface(100, 50, stroke_width=3)
        self.assertFalse(s.has_ink)
        s.begin_stroke((10, 10))
        s.stroke_to((90, 40))
        s.end_stroke()
        self.assertTrue(s.has_ink)
        self.assertEqual(s.to_image().getpixel((50, 25))[3], 255)

    def test_stroke_to_without_begin_is_ignored(self) -> None:
        s = DrawingSurface(20, 20)
        s.stroke_to((5, 5))
        self.assertFalse(s.has_ink)

    def test_clear_keeps_open_stroke(self) -> None:
        s = DrawingSurface(100, 50)
        s.begin_stroke((10, 10))
        s.clear()
        self.assertFalse(s.has_ink)
        self.assertIsNone(s.to_image().getbbox())
        self.assertTrue(s.is_stroking)
        s.stroke_to((20, 20))
        self.assertTrue(s.has_ink)

    def test_text_is_rendered(self) -> None:
        s = DrawingSurface(300, 100)
        s.draw_text("Alice Example", font_size=24)
        self.assertTrue(s.has_ink)
        self.assertIsNotNone(s.to_image().getbbox())
        s.draw_text("   ")
        self.assertFalse(s.has_ink)

    def test_data_url_round_trips_size(self) -> None:
        s = DrawingSurface(120, 40)
        self.assertEqual(decode_image(s.to_data_url()).size, (120, 40))


if __name__ == "__main__":
    unittest.main()
