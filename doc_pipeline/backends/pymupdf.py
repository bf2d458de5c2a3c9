"""
Digital-text extraction with PyMuPDF.

In-process alternative to the pdfminer backend. PyMuPDF's `rawdict` text
gives per-glyph boxes, fonts and colours; each text line is turned into
the same character-slot stream pdf2txt produces (whitespace glyphs become
empty slots that carry attributes) and goes through the same layout
reconstruction. Embedded images are written to the run's image directory
and OCR'd through the nested pipeline.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from ..exceptions import InputError
from ..geometry import BoundingBox
from ..layout import CharSlot, break_line_into_words
from ..models import Document, Element, Image, Page
from ..tools import remove_path, repair_pdf
from .base import DigitalTextExtractor

logger = logging.getLogger(__name__)


@dataclass
class RawPage:
    """Page content read from PyMuPDF, before layout reconstruction."""

    page_number: int
    box: BoundingBox
    lines: list[list[CharSlot]] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)


def _srgb_to_ncolour(color: int) -> str:
    r, g, b = (color >> 16) & 255, (color >> 8) & 255, color & 255
    return f"[{r / 255:.4f}, {g / 255:.4f}, {b / 255:.4f}]"


def _char_slot(char: dict, span: dict, page_height: float) -> CharSlot:
    x0, y0, x1, y1 = char["bbox"]
    # Report boxes in PDF space (bottom-left origin), like pdf2txt does.
    attributes = {
        "font": span.get("font", ""),
        "size": str(span.get("size", 0)),
        "bbox": f"{x0},{page_height - y1},{x1},{page_height - y0}",
        "ncolour": _srgb_to_ncolour(span.get("color", 0)),
    }
    content = char.get("c", "")
    return CharSlot(text=content if content.strip() else None, attributes=attributes)


def read_pages(pdf_path: Path, images_dir: Optional[Path]) -> list[RawPage]:
    """Read text lines and embedded images of every page."""
    raw_pages: list[RawPage] = []
    with fitz.open(pdf_path) as doc:
        for page in doc:
            rect = page.rect
            raw = RawPage(
                page_number=page.number + 1,
                box=BoundingBox(left=0.0, top=0.0, width=rect.width, height=rect.height),
            )

            text = page.get_text("rawdict")
            for block in text.get("blocks", []):
                if block.get("type", 0) != 0:
                    continue
                for line in block.get("lines", []):
                    slots = [
                        _char_slot(char, span, rect.height)
                        for span in line.get("spans", [])
                        for char in span.get("chars", [])
                    ]
                    if slots:
                        raw.lines.append(slots)

            if images_dir is not None:
                raw.images = _write_images(doc, page, images_dir)
            raw_pages.append(raw)
    return raw_pages


def _write_images(doc: fitz.Document, page: fitz.Page, images_dir: Path) -> list[Image]:
    images: list[Image] = []
    for info in page.get_images(full=True):
        xref = info[0]
        try:
            extracted = doc.extract_image(xref)
        except (RuntimeError, ValueError) as exc:
            logger.warning(f"Could not extract image {xref} on page {page.number + 1}: {exc}")
            continue
        if not extracted or not extracted.get("image"):
            continue

        image_file = images_dir / f"page{page.number + 1:03d}_img{xref}.{extracted.get('ext', 'png')}"
        image_file.write_bytes(extracted["image"])

        for rect in page.get_image_rects(xref):
            images.append(
                Image(
                    box=BoundingBox(left=rect.x0, top=rect.y0, width=rect.width, height=rect.height),
                    src=str(image_file),
                )
            )
    return images


class PyMuPDFExtractor(DigitalTextExtractor):
    name = "pymupdf"

    async def run(self, input_file: str) -> Document:
        pdf_path = self.check_input(input_file)
        start_time = time.time()

        repaired: Optional[Path] = None
        if self.config.extractor.repair_pdf:
            repaired = await asyncio.to_thread(repair_pdf, pdf_path)

        extract_images = self.config.extractor.extract_images
        images_dir, images_dir_is_temporary = (
            self.images_location(pdf_path) if extract_images else (None, False)
        )

        try:
            logger.info("Extracting PDF contents using PyMuPDF...")
            try:
                raw_pages = await asyncio.to_thread(read_pages, repaired or pdf_path, images_dir)
            except RuntimeError as exc:
                raise InputError("PDF file is corrupted or unreadable", path=str(pdf_path), details=str(exc)) from exc
            finally:
                remove_path(repaired)

            pages = await asyncio.gather(*(self.build_page(raw) for raw in raw_pages))
        finally:
            if images_dir_is_temporary:
                remove_path(images_dir)

        logger.info(
            f"PyMuPDF extracted {len(pages)} pages from {pdf_path.name} "
            f"in {time.time() - start_time:.2f}s"
        )
        return Document(pages=sorted(pages, key=lambda p: p.page_number), input_file=str(pdf_path))

    async def build_page(self, raw: RawPage) -> Page:
        elements: list[Element] = []
        for slots in raw.lines:
            elements.extend(
                break_line_into_words(
                    slots,
                    page_height=raw.box.height,
                    word_separator=self.config.extractor.word_separator,
                )
            )
        elements.extend(raw.images)
        elements.extend(await self.ocr_images(raw.images))
        return Page(page_number=raw.page_number, box=raw.box, elements=elements)
