"""
Layout reconstruction: character slots -> words.

Extraction tools report characters, not words. A text line arrives as an
ordered list of slots, each either a concrete glyph with attributes
(font, size, bbox, colour) or an empty slot. Empty slots mark word
boundaries, except for the "fake spaces" some tools emit as artifacts.

Usage:
    slots = [CharSlot.from_element(node) for node in textline.iter("text")]
    words = break_line_into_words(slots, page_height=792.0)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence
from xml.etree.ElementTree import Element as XmlElement

from .exceptions import MalformedToolOutputError
from .geometry import UNDEFINED_FONT, Font, box_from_pdf_coords, parse_bbox
from .models import Character, Word

logger = logging.getLogger(__name__)

INVISIBLE_CHARS = frozenset({"\u200b"})  # zero width space
UNRESOLVED_GLYPH = "?"
DEFAULT_COLOR = "#000000"

_CID_PATTERN = re.compile(r"\(cid:")
_BOLD_PATTERN = re.compile(r"bold", re.IGNORECASE)
_ITALIC_PATTERN = re.compile(r"italic", re.IGNORECASE)
_UNDERLINE_PATTERN = re.compile(r"underline", re.IGNORECASE)


@dataclass(frozen=True)
class CharSlot:
    """
    One `<text>` entry of an extraction tool's text line.

    Attributes:
        text: Glyph content, or None for an empty (whitespace-only) slot
        attributes: Raw attributes (font, size, bbox, ncolour), or None
    """

    text: Optional[str] = None
    attributes: Optional[Mapping[str, str]] = None

    @property
    def is_empty(self) -> bool:
        return self.text is None

    @property
    def has_attributes(self) -> bool:
        return bool(self.attributes)

    @classmethod
    def from_element(cls, node: XmlElement) -> CharSlot:
        text = node.text if node.text and node.text.strip() else None
        attributes = dict(node.attrib) or None
        return cls(text=text, attributes=attributes)


def valid_character(content: str) -> str:
    """Glyphs reported as unresolved codes, e.g. "(cid:12)", render as '?'."""
    return UNRESOLVED_GLYPH if _CID_PATTERN.search(content) else content


def ncolour_to_hex(color: Optional[str]) -> str:
    """
    Convert a pdfminer `ncolour` value to `#rrggbb`.

    Accepts "[r, g, b]", "(r, g, b)" or a single gray component, with
    components in 0..1. Anything unparseable yields black.
    """
    if not color:
        return DEFAULT_COLOR
    raw = color.strip().strip("[]()")
    try:
        components = [float(v) for v in raw.split(",") if v.strip()]
    except ValueError:
        return DEFAULT_COLOR
    if not components:
        return DEFAULT_COLOR

    r = components[0]
    g = components[1] if len(components) > 1 else r
    b = components[2] if len(components) > 2 else r

    def to_hex(x: float) -> str:
        return f"{min(255, max(0, math.ceil(x * 255))):02x}"

    return "#" + "".join(to_hex(x) for x in (r, g, b))


def font_from_attributes(attributes: Mapping[str, str]) -> Font:
    name = attributes.get("font", "")
    try:
        size = float(attributes.get("size", 0))
    except ValueError:
        size = 0.0
    return Font(
        family=name,
        size=size,
        weight="bold" if _BOLD_PATTERN.search(name) else "medium",
        is_italic=bool(_ITALIC_PATTERN.search(name)),
        is_underline=bool(_UNDERLINE_PATTERN.search(name)),
        color=ncolour_to_hex(attributes.get("ncolour")),
    )


def most_common_font(fonts: Sequence[Font]) -> Font:
    """
    Dominant font by bucketing.

    Each font joins the first bucket whose representative is structurally
    equal to it, else opens a new bucket. The largest bucket wins; ties go
    to the bucket opened first.
    """
    buckets: list[list[Font]] = []
    for font in fonts:
        for bucket in buckets:
            if bucket[0] == font:
                bucket.append(font)
                break
        else:
            buckets.append([font])

    if not buckets:
        return UNDEFINED_FONT

    best = buckets[0]
    for bucket in buckets[1:]:
        if len(bucket) > len(best):
            best = bucket
    return best[0]


def _fake_space_positions(slots: Sequence[CharSlot]) -> set[int]:
    # An attribute-less empty slot directly followed by an empty slot that
    # carries attributes is an extraction artifact.
    positions = set()
    for i in range(len(slots) - 1):
        current, following = slots[i], slots[i + 1]
        if (
            current.is_empty
            and not current.has_attributes
            and following.is_empty
            and following.has_attributes
        ):
            positions.add(i)
    return positions


def _to_character(slot: CharSlot, page_height: float, scaling_factor: float) -> Character:
    attributes = slot.attributes or {}
    bbox = attributes.get("bbox")
    if not bbox:
        raise MalformedToolOutputError(
            "Character slot without a bbox attribute",
            details=repr(slot.text),
        )
    try:
        box = box_from_pdf_coords(parse_bbox(bbox), page_height, scaling_factor)
    except ValueError as exc:
        raise MalformedToolOutputError("Invalid character bbox", details=bbox) from exc

    return Character(
        box=box,
        content=valid_character(slot.text or ""),
        font=font_from_attributes(attributes),
    )


def break_line_into_words(
    slots: Sequence[CharSlot],
    page_height: float,
    word_separator: str = " ",
    scaling_factor: float = 1.0,
) -> list[Word]:
    """
    Group one text line's character slots into words.

    Args:
        slots: The line's slots in reading order
        page_height: Height of the page, used to flip PDF coordinates
        word_separator: Glyph treated as a boundary when it opens or closes the line
        scaling_factor: Multiplier applied to every coordinate

    Glyphs whose bbox is missing or unreadable are dropped with a warning;
    the rest of the line is kept.

    Returns:
        Words in line order (possibly empty)
    """
    fake_spaces = _fake_space_positions(slots)

    chars: list[Optional[Character]] = []
    for i, slot in enumerate(slots):
        if i in fake_spaces or slot.text in INVISIBLE_CHARS:
            continue
        if slot.is_empty:
            chars.append(None)
            continue
        try:
            chars.append(_to_character(slot, page_height, scaling_factor))
        except MalformedToolOutputError as exc:
            logger.warning(f"Dropping unreadable character slot: {exc}")

    if chars and (chars[0] is None or chars[0].content == word_separator):
        chars.pop(0)
    if chars and (chars[-1] is None or chars[-1].content == word_separator):
        chars.pop()

    if not chars:
        return []

    if any(len(c.content) > 1 for c in chars if c is not None):
        logger.debug("Extraction tool returned some characters of size > 1")

    words: list[Word] = []
    group: list[Character] = []
    for char in chars:
        if char is None:
            if group:
                words.append(Word.from_characters(group, most_common_font([c.font for c in group])))
            group = []
        else:
            group.append(char)
    if group:
        words.append(Word.from_characters(group, most_common_font([c.font for c in group])))

    return words
