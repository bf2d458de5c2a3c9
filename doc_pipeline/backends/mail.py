"""
E-mail input.

An `.eml` message is rendered to PDF (A4, 10mm margins) with PyMuPDF's
HTML layout engine and handed to the configured PDF extractor. Messages
without an HTML body are rendered from their plain-text body.
"""

from __future__ import annotations

import asyncio
import html
import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from ..config import PipelineConfig
from ..exceptions import InputError
from ..models import Document
from ..tools import remove_path, temporary_file
from .base import Extractor

logger = logging.getLogger(__name__)

PAGE_FORMAT = "a4"
MARGIN_MM = 10.0
POINTS_PER_MM = 72 / 25.4

STYLES = """
<style>
table {
  width: 100%;
}
</style>
"""


def read_message(path: Path) -> EmailMessage:
    with open(path, "rb") as f:
        return BytesParser(policy=policy.default).parse(f)


def message_to_html(message: EmailMessage) -> str:
    """HTML body of the message, or its plain-text body wrapped in <pre>."""
    body = message.get_body(preferencelist=("html",))
    if body is not None:
        return body.get_content()

    body = message.get_body(preferencelist=("plain",))
    text = body.get_content() if body is not None else ""
    return f"<pre>{html.escape(text)}</pre>"


def render_html_to_pdf(html_text: str, output: Path) -> int:
    """
    Lay out `html_text` on A4 pages and write them to `output`.

    Returns:
        Number of pages written
    """
    mediabox = fitz.paper_rect(PAGE_FORMAT)
    margin = MARGIN_MM * POINTS_PER_MM
    where = mediabox + (margin, margin, -margin, -margin)

    def rectfn(rect_num, filled):
        return mediabox, where, None

    story = fitz.Story(html=html_text + STYLES)
    # Anchors become URI link annotations.
    with story.write_with_links(rectfn) as doc:
        doc.save(str(output))
        return doc.page_count


class EmailExtractor(Extractor):
    """Renders a message to PDF and delegates to `pdf_extractor`."""

    name = "email"

    def __init__(self, config: Optional[PipelineConfig] = None, pdf_extractor: Optional[Extractor] = None):
        super().__init__(config)
        if pdf_extractor is None:
            raise ValueError("EmailExtractor needs a PDF extractor to delegate to")
        self.pdf_extractor = pdf_extractor

    async def run(self, input_file: str) -> Document:
        """
        Extract the message through its rendered PDF.

        The PDF stays on disk as `document.source_pdf` so link detection can
        read the anchors' annotations; `release` removes it.
        """
        eml_path = self.check_input(input_file)
        pdf_file = temporary_file(".pdf")

        try:
            try:
                message = await asyncio.to_thread(read_message, eml_path)
            except (OSError, ValueError) as exc:
                raise InputError("Unreadable e-mail message", path=str(eml_path), details=str(exc)) from exc

            logger.info(f"Rendering {eml_path.name} to PDF...")
            pages = await asyncio.to_thread(render_html_to_pdf, message_to_html(message), pdf_file)
            logger.debug(f"{eml_path.name} rendered to {pages} pages")

            document = await self.pdf_extractor.run(str(pdf_file))
        except BaseException:
            remove_path(pdf_file)
            raise

        document.input_file = str(eml_path)
        document.source_pdf = str(pdf_file)
        return document

    def release(self, document: Document) -> None:
        if document.source_pdf:
            remove_path(Path(document.source_pdf))
            document.source_pdf = None
