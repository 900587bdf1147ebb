from __future__ import annotations

import re
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from core.helpers.image_data import encode_png
from core.logging.logic.logger import logger
from fields.logic.artifact_exporter import ArtifactExporter
from fields.models.coordinate_field import PlainField, SignatureSlotField, TableField
from fields.models.geometry import FieldGeometry
from fields.models.signature_placement import SignaturePlacement
from fields.models.table_data import TableData

_PAGE_OBJECT = re.compile(rb"/Type\s*/Page\b(?!s)")


class TestArtifactExporter(unittest.TestCase):
    def setUp(self) -> None:
        logger.configure(db_path=":memory:")
        logger.clear_logs()
        signature = encode_png(Image.new("RGBA", (300, 100), (0, 0, 0, 255)))
        self.fields = [
            PlainField("name", FieldGeometry(100, 100, 300, 40), value="Alice Example"),
            TableField("tbl", FieldGeometry(100, 200, 600, 90),
                       TableData(2, 2, (("Item", "Qty"), ("Paper", "3")), (0.7, 0.3))),
            SignatureSlotField("sig", FieldGeometry(100, 400, 300, 100, page=2), value=signature),
        ]
        self.placements = [SignaturePlacement("p", FieldGeometry(500, 400, 200, 80, page=2), "s@example.com")]

    def test_export_produces_multi_page_pdf(self) -> None:
        pages = [Image.new("RGB", (1240, 1754), "white"), None]
        pdf = ArtifactExporter().export(pages, self.fields, self.placements, title="Contract")
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertEqual(len(_PAGE_OBJECT.findall(pdf)), 2)
        self.assertTrue(logger.query_logs(feature="ArtifactExport", event="Exported"))

    def test_export_without_pages_writes_one_blank_page(self) -> None:
        pdf = ArtifactExporter().export([], [])
        self.assertEqual(len(_PAGE_OBJECT.findall(pdf)), 1)

    def test_unreadable_signature_is_skipped_and_logged(self) -> None:
        broken = SignatureSlotField("bad", FieldGeometry(0, 0, 100, 50), value="data:image/png;base64,AAAA")
        pdf = ArtifactExporter().export([None], [broken])
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertTrue(logger.query_logs(feature="ArtifactExport", event="SignatureUnreadable"))

    def test_export_to_creates_parent_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = ArtifactExporter().export_to(Path(tmp) / "out" / "signed.pdf", [None], self.fields)
            self.assertTrue(target.read_bytes().startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
