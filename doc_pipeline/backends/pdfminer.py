"""
Digital-text extraction with pdfminer's `pdf2txt.py`.

pdf2txt is run once per input and writes an XML description of every
page: text boxes -> text lines -> character slots, plus figures that
reference image side-files:

    <page id="1" bbox="0.000,0.000,612.000,792.000">
      <textbox id="0" bbox="...">
        <textline bbox="...">
          <text font="ABCDEF+Helvetica-Bold" bbox="72.0,700.1,79.3,712.1"
                ncolour="[0, 0, 0]" size="12.0">H</text>
          <text> </text>
          ...
        </textline>
      </textbox>
      <figure name="Im1" bbox="...">
        <image width="200" height="100" src="Im1.png" />
      </figure>
    </page>

Pages are built concurrently; each page joins the nested OCR runs of its
embedded images before it is returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree

from ..exceptions import MalformedToolOutputError
from ..geometry import BoundingBox, box_from_pdf_coords, parse_bbox
from ..layout import CharSlot, break_line_into_words
from ..models import Document, Element, Image, Page
from ..tools import (
    remove_path,
    repair_pdf,
    require_command,
    run_extraction_command,
    temporary_file,
)
from .base import DigitalTextExtractor

logger = logging.getLogger(__name__)

TOOL_NAME = "pdf2txt.py"


class PdfminerExtractor(DigitalTextExtractor):
    name = "pdfminer"

    async def run(self, input_file: str) -> Document:
        pdf_path = self.check_input(input_file)
        pdf2txt = require_command(["pdf2txt.py", "pdf2txt"], env_var="PDF2TXT_CMD")

        start_time = time.time()
        repaired: Optional[Path] = None
        if self.config.extractor.repair_pdf:
            repaired = await asyncio.to_thread(repair_pdf, pdf_path)

        extract_images = self.config.extractor.extract_images
        images_dir, images_dir_is_temporary = (
            self.images_location(pdf_path) if extract_images else (None, False)
        )
        xml_output = temporary_file(".xml")

        try:
            command = [pdf2txt, "-c", "utf-8", "-t", "xml"]
            if images_dir is not None:
                command += ["-O", str(images_dir)]
            command += ["-o", str(xml_output), str(repaired or pdf_path)]

            logger.info("Extracting PDF contents using pdfminer...")
            await run_extraction_command(command, timeout=self.tool_timeout)
            xml_text = await asyncio.to_thread(xml_output.read_text, encoding="utf-8")
        finally:
            remove_path(xml_output)
            remove_path(repaired)

        try:
            pages = await self.parse_pages(xml_text, images_dir)
        finally:
            if images_dir_is_temporary:
                remove_path(images_dir)

        logger.info(
            f"pdfminer extracted {len(pages)} pages from {pdf_path.name} "
            f"in {time.time() - start_time:.2f}s"
        )
        return Document(pages=pages, input_file=str(pdf_path))

    async def parse_pages(self, xml_text: str, images_dir: Optional[Path]) -> list[Page]:
        logger.debug("Converting pdfminer's XML output to pages...")
        try:
            root = ElementTree.fromstring(xml_text)
        except ElementTree.ParseError as exc:
            raise MalformedToolOutputError("parseXml failed", tool=TOOL_NAME, details=str(exc)) from exc

        pages = await asyncio.gather(
            *(self.get_page(node, images_dir) for node in root.iter("page"))
        )
        return sorted(pages, key=lambda p: p.page_number)

    async def get_page(self, page_node: ElementTree.Element, images_dir: Optional[Path]) -> Page:
        try:
            page_number = int(float(page_node.get("id", "")))
            x0, y0, x1, y1 = parse_bbox(page_node.get("bbox", ""))
        except ValueError as exc:
            raise MalformedToolOutputError(
                "Page without a valid id or bbox",
                tool=TOOL_NAME,
                details=str(page_node.attrib),
            ) from exc

        page_box = BoundingBox(left=x0, top=0.0, width=abs(x1 - x0), height=abs(y1 - y0))
        page_height = y1

        elements: list[Element] = []
        for textbox in page_node.findall("textbox"):
            for textline in textbox.findall("textline"):
                slots = [CharSlot.from_element(node) for node in textline.findall("text")]
                elements.extend(
                    break_line_into_words(
                        slots,
                        page_height=page_height,
                        word_separator=self.config.extractor.word_separator,
                    )
                )

        images: list[Image] = []
        if images_dir is not None:
            for figure in page_node.iter("figure"):
                images.extend(self.interpret_images(figure, images_dir, page_height))
        elements.extend(images)

        elements.extend(await self.ocr_images(images))
        return Page(page_number=page_number, box=page_box, elements=elements)

    @staticmethod
    def interpret_images(
        figure: ElementTree.Element,
        images_dir: Path,
        page_height: float,
    ) -> list[Image]:
        bbox = figure.get("bbox")
        if not bbox:
            return []
        box = box_from_pdf_coords(parse_bbox(bbox), page_height)
        return [
            Image(box=box, src=str(images_dir / image.get("src")))
            for image in figure.findall("image")
            if image.get("src")
        ]
