"""
OCR extraction of a single image with Tesseract.

Tesseract reports word-level boxes only. Each word's box is split evenly
across its glyphs to build characters; OCR gives no font information, so
words carry the undefined font.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytesseract
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from ..exceptions import InputError
from ..geometry import UNDEFINED_FONT, BoundingBox
from ..layout import most_common_font
from ..models import Character, Document, Page, Word
from ..tools import require_command, run_extraction_command
from .base import Extractor

logger = logging.getLogger(__name__)

TOOL_NAME = "tesseract"
TSV_CONFIG = "tsv"
WORD_LEVEL = 5


def read_image_size(image_path: Path) -> tuple[int, int]:
    try:
        with PILImage.open(image_path) as image:
            return image.size
    except UnidentifiedImageError as exc:
        raise InputError("Unreadable image", path=str(image_path), details=str(exc)) from exc


def word_from_ocr(text: str, box: BoundingBox) -> Word:
    """Build a word whose characters share its box evenly."""
    char_width = box.width / len(text)
    characters = [
        Character(
            box=BoundingBox(
                left=box.left + i * char_width,
                top=box.top,
                width=char_width,
                height=box.height,
            ),
            content=char,
            font=UNDEFINED_FONT,
        )
        for i, char in enumerate(text)
    ]
    return Word.from_characters(characters, most_common_font([c.font for c in characters]))


def document_from_ocr_data(data: dict, image_size: tuple[int, int], input_file: str) -> Document:
    """Convert pytesseract's `image_to_data` dictionary into a Document."""
    width, height = image_size
    pages: dict[int, Page] = {}

    for i, text in enumerate(data.get("text", [])):
        if int(data["level"][i]) != WORD_LEVEL or not text or not text.strip():
            continue
        page_number = int(data["page_num"][i]) or 1
        page = pages.setdefault(
            page_number,
            Page(
                page_number=page_number,
                box=BoundingBox(left=0.0, top=0.0, width=width, height=height),
            ),
        )
        box = BoundingBox(
            left=float(data["left"][i]),
            top=float(data["top"][i]),
            width=float(data["width"][i]),
            height=float(data["height"][i]),
        )
        page.elements.append(word_from_ocr(text.strip(), box))

    if not pages:
        pages[1] = Page(page_number=1, box=BoundingBox(left=0.0, top=0.0, width=width, height=height))

    return Document(pages=[pages[n] for n in sorted(pages)], input_file=input_file)


class TesseractExtractor(Extractor):
    """
    Runs the tesseract binary on one image.

    The command goes through `run_extraction_command`, so a cancelled run
    (e.g. the orchestrator's timeout) kills the OCR process. The TSV
    output is parsed with pytesseract's reader into `image_to_data`'s
    dictionary layout.
    """

    name = "tesseract"

    async def run(self, input_file: str) -> Document:
        image_path = self.check_input(input_file)
        size = read_image_size(image_path)
        logger.info(f"Running OCR on {image_path.name} using tesseract...")
        data = await self.image_to_data(image_path)
        document = document_from_ocr_data(data, size, str(image_path))
        logger.debug(f"tesseract found {document.word_count} words in {image_path.name}")
        return document

    async def image_to_data(self, image_path: Path) -> dict:
        tesseract_cmd = require_command([TOOL_NAME], env_var="TESSERACT_CMD")
        command = [
            tesseract_cmd,
            str(image_path),
            "stdout",
            "-l", self.config.extractor.ocr_language,
            TSV_CONFIG,
        ]
        result = await run_extraction_command(command, timeout=self.tool_timeout)
        return pytesseract.pytesseract.file_to_dict(result.stdout, "\t", -1)
