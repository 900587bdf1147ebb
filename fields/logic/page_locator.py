"""
Page raster locator.

Resolves the page images of a document's template. The stored path list
arrives in one of three shapes:

    "[./uploads/a-1.png, ./uploads/a-2.png]"   bracketed (not JSON)
    "./uploads/a-1.png, ./uploads/a-2.png"     comma-separated
    "./uploads/a-1.png"                        single path

A leading ``./`` is normalized to ``/``. Without a path list, the single
template file name (``.pdf`` swapped for ``.png``) under
``/uploads/pdf-templates/`` is used.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

PDF_TEMPLATE_DIR = "/uploads/pdf-templates/"


def parse_image_paths(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = [str(p).strip() for p in raw]
    else:
        text = str(raw)
        if "[" in text and "]" in text:
            text = text.replace("[", "").replace("]", "")
            parts = [p.strip().strip('"').strip("'") for p in text.split(",")]
        elif "," in text:
            parts = [p.strip() for p in text.split(",")]
        else:
            parts = [text.strip()]
    return [_normalize(p) for p in parts if p]


def _normalize(path: str) -> str:
    return "/" + path[2:] if path.startswith("./") else path


def fallback_path(pdf_path: str) -> str:
    name = pdf_path.replace("\\", "/").rsplit("/", 1)[-1]
    return PDF_TEMPLATE_DIR + name.replace(".pdf", ".png")


def template_page_paths(template: Optional[Mapping[str, Any]]) -> List[str]:
    """Page image paths of a template (``pdfImagePaths`` or ``pdfImagePath``)."""
    if not template:
        return []
    paths = parse_image_paths(template.get("pdfImagePaths"))
    if paths:
        return paths
    single = template.get("pdfImagePath")
    if single:
        return [fallback_path(str(single))]
    return []


def max_field_page(fields: Iterable[Any]) -> int:
    pages = [p for p in (getattr(f, "page", 1) for f in fields) if isinstance(p, int) and p > 0]
    return max(pages) if pages else 1


def total_pages(page_paths: List[str], fields: Iterable[Any] = ()) -> int:
    return max(len(page_paths), max_field_page(fields), 1)


class PageLocator:
    """Turns stored page paths into absolute raster URLs."""

    def __init__(self, asset_base_url: str) -> None:
        self._base = asset_base_url.rstrip("/")

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base}/{path.lstrip('/')}"

    def page_urls(self, template: Optional[Mapping[str, Any]]) -> List[str]:
        return [self.url(p) for p in template_page_paths(template)]

    def page_url(self, template: Optional[Mapping[str, Any]], page: int) -> Optional[str]:
        """URL of a 1-based page, None when the template has no raster for it."""
        urls = self.page_urls(template)
        if 1 <= page <= len(urls):
            return urls[page - 1]
        return None
