"""
Document Object Model for the parsing pipeline.

A Document is created once per pipeline run by an extraction backend,
mutated in place by each cleaner module in turn and finally handed to the
output stage.

Architecture:
    Document
      └── Page[]                 (media box, page number)
            └── Element[]        (tagged union, discriminated by `type`)
                  ├── Word       → Character[]  (box + content + font)
                  ├── Image      (side-channel raster file)
                  └── TableOfContents → Element[] content, derived items

Design Principles:
    - Pydantic v2 models, so a Document serializes to JSON as-is
    - Immutable leaves (BoundingBox, Font, Character, LinkInfo)
    - Every element variant renders itself to HTML, Markdown and plain text
    - Facts derived by cleaner modules live in a typed `WordProperties`
      record rather than an open key/value map

Usage:
    document = orchestrator.run_sync("document.pdf")

    for word in document.get_elements_of_type(Word):
        if word.properties.link:
            print(word.to_string(), "->", word.properties.link.target_url)
"""

from __future__ import annotations

import html
from typing import Annotated, Iterator, Literal, Optional, Protocol, TypeVar, Union

from pydantic import BaseModel, Field, model_validator

from .config import PipelineConfig
from .geometry import UNDEFINED_FONT, BoundingBox, Font, merge_boxes


class Renderable(Protocol):
    """Capability shared by every element variant."""

    def to_html(self) -> str: ...

    def to_markdown(self) -> str: ...

    def to_string(self) -> str: ...


# =============================================================================
# LEAVES
# =============================================================================


class Character(BaseModel):
    """A single glyph. Owned exclusively by the Word that contains it."""

    box: BoundingBox
    content: str
    font: Font = UNDEFINED_FONT

    model_config = {"frozen": True}


class LinkInfo(BaseModel):
    """
    Hyperlink attached to a word by link detection.

    Attributes:
        markdown: Rendered Markdown link, e.g. "[text](https://...)"
        target_url: Raw target ("https://...", "mailto:...", "#anchor")
    """

    markdown: str
    target_url: str

    model_config = {"frozen": True}


class WordProperties(BaseModel):
    """Facts attached to a word by cleaner modules after extraction."""

    link: Optional[LinkInfo] = None


# =============================================================================
# ELEMENT VARIANTS
# =============================================================================


class Word(BaseModel):
    """
    A run of characters between two word boundaries on a text line.

    `box` is the merge of the characters' boxes and `font` the dominant
    font among them (see `layout.most_common_font`).
    """

    type: Literal["word"] = "word"
    box: BoundingBox
    characters: list[Character] = Field(default_factory=list)
    font: Font = UNDEFINED_FONT
    properties: WordProperties = Field(default_factory=WordProperties)

    @classmethod
    def from_characters(cls, characters: list[Character], font: Font) -> Word:
        return cls(
            box=merge_boxes(c.box for c in characters),
            characters=characters,
            font=font,
        )

    def to_string(self) -> str:
        return "".join(c.content for c in self.characters)

    def to_markdown(self) -> str:
        if self.properties.link:
            return self.properties.link.markdown
        return self.to_string()

    def to_html(self) -> str:
        text = html.escape(self.to_string())
        if self.properties.link:
            href = html.escape(self.properties.link.target_url, quote=True)
            return f'<a href="{href}">{text}</a>'
        return text

    def __str__(self) -> str:
        return self.to_string()


class Image(BaseModel):
    """Reference to an embedded raster file extracted from the page."""

    type: Literal["image"] = "image"
    box: BoundingBox
    src: str

    def to_string(self) -> str:
        return ""

    def to_markdown(self) -> str:
        return f"![image]({self.src})"

    def to_html(self) -> str:
        return f'<img src="{html.escape(self.src, quote=True)}" />'


class TableOfContentsItem(BaseModel):
    description: str
    page_number: str = "0"
    level: int = 0

    def to_string(self) -> str:
        return self.description

    def to_markdown(self) -> str:
        return f"{'  ' * self.level}- {self.description}"

    def to_html(self) -> str:
        return (
            f'<span class="toc-item" data-level="{self.level}">'
            f"{html.escape(self.description)}</span>"
        )


class TableOfContents(BaseModel):
    """
    Composite element grouping the entries of a table of contents.

    `items` is derived from `content`. It is recomputed on construction and
    by `set_content()` only: mutating `content` in place leaves `items`
    stale, so callers must replace the sequence through `set_content()`.
    """

    type: Literal["toc"] = "toc"
    box: Optional[BoundingBox] = None
    content: list[Element] = Field(default_factory=list)
    items: list[TableOfContentsItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _derive_items(self) -> TableOfContents:
        self._update_items()
        return self

    def set_content(self, content: list[Element]) -> None:
        self.content = list(content)
        self._update_items()

    def _update_items(self) -> None:
        self.items = [self._content_to_item(element) for element in self.content]

    @staticmethod
    def _content_to_item(element: Element) -> TableOfContentsItem:
        return TableOfContentsItem(description=element.to_markdown(), page_number="0", level=0)

    def to_string(self) -> str:
        return "\n".join(item.to_string() for item in self.items)

    def to_markdown(self) -> str:
        return "\n".join(item.to_markdown() for item in self.items)

    def to_html(self) -> str:
        return "<br>".join(item.to_html() for item in self.items)


Element = Annotated[
    Union[Word, Image, TableOfContents],
    Field(discriminator="type"),
]

TableOfContents.model_rebuild()

E = TypeVar("E")


def iter_elements(elements: list[Element], recursive: bool = True) -> Iterator[Element]:
    """Pre-order walk over elements, descending into composite content."""
    stack = list(reversed(elements))
    while stack:
        element = stack.pop()
        yield element
        if recursive and isinstance(element, TableOfContents):
            stack.extend(reversed(element.content))


# =============================================================================
# CONTAINERS
# =============================================================================


class Page(BaseModel):
    """A single page. Owns its elements exclusively."""

    page_number: int = Field(..., ge=1)
    box: BoundingBox
    elements: list[Element] = Field(default_factory=list)

    def get_elements_of_type(self, element_type: type[E], recursive: bool = True) -> list[E]:
        return [e for e in iter_elements(self.elements, recursive) if isinstance(e, element_type)]

    def to_string(self) -> str:
        parts = [e.to_string() for e in self.elements]
        return " ".join(p for p in parts if p)

    def to_markdown(self) -> str:
        parts = [e.to_markdown() for e in self.elements]
        return " ".join(p for p in parts if p)

    def to_html(self) -> str:
        body = " ".join(e.to_html() for e in self.elements)
        return f'<div class="page" id="page-{self.page_number}">{body}</div>'


class Document(BaseModel):
    """
    Result of one pipeline run.

    Attributes:
        pages: Pages ordered by page number
        input_file: Path of the file the document was extracted from
        source_pdf: Intermediate PDF the pages were read from when the input
            is not a PDF itself (e.g. a rendered e-mail); not serialized
    """

    pages: list[Page] = Field(default_factory=list)
    input_file: str
    source_pdf: Optional[str] = Field(None, exclude=True)

    @property
    def pdf_file(self) -> str:
        """The PDF holding this document's page objects and annotations."""
        return self.source_pdf or self.input_file

    def get_elements_of_type(self, element_type: type[E], recursive: bool = True) -> list[E]:
        """All elements of `element_type` across pages, in page order."""
        found: list[E] = []
        for page in self.pages:
            found.extend(page.get_elements_of_type(element_type, recursive))
        return found

    def get_all_elements(self) -> list[Element]:
        """Top-level elements of every page, in page order."""
        return [element for page in self.pages for element in page.elements]

    @property
    def word_count(self) -> int:
        return len(self.get_elements_of_type(Word))

    @property
    def link_count(self) -> int:
        return sum(1 for w in self.get_elements_of_type(Word) if w.properties.link)

    def to_text(self) -> str:
        return "\n\n".join(page.to_string() for page in self.pages)

    def to_markdown(self) -> str:
        return "\n\n".join(page.to_markdown() for page in self.pages)

    def to_html(self) -> str:
        body = "\n".join(page.to_html() for page in self.pages)
        return f"<html><body>\n{body}\n</body></html>"

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)


# =============================================================================
# API MODELS
# =============================================================================


class ParseRequest(BaseModel):
    file_path: str
    config: Optional[PipelineConfig] = None


class ParseResponse(BaseModel):
    document_id: str
    pages: int
    words: int
    links: int
    output_paths: dict[str, str] = Field(default_factory=dict)
