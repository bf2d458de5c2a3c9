"""
Link detection.

Attaches hyperlinks to words using two strategies:

1. Geometry: link annotations read from the PDF's object graph (via
   pdfminer's dumppdf) are matched against word boxes. A word covered by
   an annotation above the overlap threshold takes that annotation's link;
   when several annotations qualify, the last one on the page wins.
2. Text: words left without a link are matched against URL and e-mail
   patterns.

Metadata extraction is best effort: a missing tool or unreadable dump
means zero annotations, and the textual pass still runs.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..cleaner import Module
from ..exceptions import is_auxiliary_failure
from ..geometry import overlap_ratio
from ..models import Document, LinkInfo, Word
from ..tools import remove_path, require_command, run_extraction_command, temporary_file
from .pdf_links import LinkAnnotation, group_by_page, parse_link_annotations

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r"\bhttps?://?[^\s()<>]+(?:\(\w+\)|[^\s\W]|/)?")
MAIL_PATTERN = re.compile(
    r"""
    ^(?:"[\w\-\s]+"|[\w\-]+(?:\.[\w\-]+)*)
    @(?:
        (?:[\w\-]+\.)*\w[\w\-]{0,66}\.[a-z]{2,6}(?:\.[a-z]{2})?
      | \[?(?:(?:25[0-5]|2[0-4]\d|1\d{2}|\d{1,2})\.){3}(?:25[0-5]|2[0-4]\d|1\d{2}|\d{1,2})\]?
    )$
    """,
    re.VERBOSE,
)


def build_link(text: str, target: str) -> LinkInfo:
    return LinkInfo(markdown=f"[{text}]({target})", target_url=target)


def match_textual_link(word: Word) -> Optional[LinkInfo]:
    """Link for a word that looks like a URL or an e-mail address."""
    text = word.to_string()
    if LINK_PATTERN.search(text):
        return build_link(text, text)
    if MAIL_PATTERN.search(text):
        return build_link(text, f"mailto:{text}")
    return None


class LinkDetectionModule(Module):
    name = "link-detection"
    description = "Convert PDF link annotations and textual URLs/e-mails into word links"

    class Options(BaseModel):
        overlap_threshold: float = Field(
            0.7,
            description="Share of a word's box an annotation must cover to link it",
            ge=0,
            le=1,
        )
        detect_textual_links: bool = Field(
            True,
            description="Match URL and e-mail patterns on words without an annotation",
        )
        tool_timeout_seconds: Optional[float] = Field(
            None,
            description="Timeout for the metadata extraction command",
            gt=0,
        )

    async def main(self, doc: Document) -> Document:
        annotations = await self.extract_links_from_metadata(doc.pdf_file)
        links_by_page = group_by_page(annotations)

        for page in doc.pages:
            links = links_by_page.get(page.page_number, [])
            for word in page.get_elements_of_type(Word, recursive=True):
                for link in links:
                    if overlap_ratio(word.box, link.box) > self.options.overlap_threshold:
                        word.properties.link = build_link(word.to_string(), link.url)

                if word.properties.link is None and self.options.detect_textual_links:
                    word.properties.link = match_textual_link(word)

        return doc

    async def extract_links_from_metadata(self, input_file: str) -> list[LinkAnnotation]:
        if Path(input_file).suffix.lower() != ".pdf":
            logger.debug(f"{input_file} is not a PDF; skipping link metadata.")
            return []

        try:
            xml_text = await self.get_file_metadata(input_file)
            annotations = await asyncio.to_thread(parse_link_annotations, xml_text)
        except Exception as exc:
            if not is_auxiliary_failure(exc):
                raise
            logger.warning(f"Link metadata unavailable, continuing without it: {exc}")
            return []

        logger.info(f"Found {len(annotations)} links in PDF metadata.")
        return annotations

    async def get_file_metadata(self, pdf_path: str) -> str:
        """Run dumppdf over the file and return its XML object dump."""
        dumppdf = require_command(["dumppdf.py", "dumppdf"], env_var="DUMPPDF_CMD")
        xml_output = temporary_file(".xml")
        try:
            logger.info("Extracting metadata with dumppdf...")
            await run_extraction_command(
                [dumppdf, "-a", "-o", str(xml_output), pdf_path],
                timeout=self.options.tool_timeout_seconds,
            )
            return await asyncio.to_thread(xml_output.read_text, encoding="utf-8", errors="replace")
        finally:
            remove_path(xml_output)
