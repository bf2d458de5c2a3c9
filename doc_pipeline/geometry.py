"""
Geometry kernel: bounding boxes, fonts and the arithmetic over them.

Coordinates are page-local with the origin at the top-left corner and
y increasing downward. Extraction tools that report PDF space (origin at
the bottom-left) go through `box_from_pdf_coords` first.
"""

from __future__ import annotations

from typing import Iterable, Literal, Sequence

from pydantic import BaseModel, Field


class BoundingBox(BaseModel):
    """Axis-aligned box in page space (top-left origin)."""

    left: float = 0.0
    top: float = 0.0
    width: float = Field(0.0, ge=0)
    height: float = Field(0.0, ge=0)

    model_config = {"frozen": True}

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def intersection(self, other: BoundingBox) -> BoundingBox | None:
        left = max(self.left, other.left)
        top = max(self.top, other.top)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return BoundingBox(left=left, top=top, width=right - left, height=bottom - top)

    def translate(self, dx: float, dy: float) -> BoundingBox:
        return self.model_copy(update={"left": self.left + dx, "top": self.top + dy})

    def scale(self, sx: float, sy: float) -> BoundingBox:
        return BoundingBox(
            left=self.left * sx,
            top=self.top * sy,
            width=self.width * sx,
            height=self.height * sy,
        )

    @classmethod
    def merge(cls, boxes: Iterable[BoundingBox]) -> BoundingBox:
        return merge_boxes(boxes)


class Font(BaseModel):
    """
    Typographic attributes of a glyph.

    Equality is structural: two fonts are equal iff every field matches.
    Fonts carry no ordering.
    """

    family: str
    size: float
    weight: Literal["medium", "bold"] = "medium"
    is_italic: bool = False
    is_underline: bool = False
    color: str = "#000000"

    model_config = {"frozen": True}


UNDEFINED_FONT = Font(family="undefined", size=-1.0)


def merge_boxes(boxes: Iterable[BoundingBox]) -> BoundingBox:
    """
    Smallest box covering every input box.

    Raises:
        ValueError: if no boxes are given
    """
    boxes = list(boxes)
    if not boxes:
        raise ValueError("Cannot merge an empty sequence of boxes")

    left = min(b.left for b in boxes)
    top = min(b.top for b in boxes)
    right = max(b.right for b in boxes)
    bottom = max(b.bottom for b in boxes)
    return BoundingBox(left=left, top=top, width=right - left, height=bottom - top)


def overlap_ratio(a: BoundingBox, b: BoundingBox) -> float:
    """
    Fraction of `a`'s area covered by `b`.

    Asymmetric: 1.0 when `a` lies inside `b`, 0.0 for disjoint boxes or
    when `a` has no area.
    """
    if a.area <= 0:
        return 0.0
    inter = a.intersection(b)
    if inter is None:
        return 0.0
    return inter.area / a.area


def fonts_equal(a: Font, b: Font) -> bool:
    return a == b


def box_from_pdf_coords(
    values: Sequence[float],
    page_height: float = 0.0,
    scaling_factor: float = 1.0,
) -> BoundingBox:
    """
    Convert an `x0, y0, x1, y1` PDF-space box to page space.

    PDF space has its origin at the bottom-left; the vertical position is
    flipped against the page height: top = |page_height - y0| - height.
    """
    if len(values) < 4:
        raise ValueError(f"Expected 4 coordinates, got {len(values)}")
    x0, y0, x1, y1 = (float(v) * scaling_factor for v in values[:4])
    width = abs(x1 - x0)
    height = abs(y0 - y1)
    top = abs(page_height - y0) - height
    return BoundingBox(left=x0, top=top, width=width, height=height)


def parse_bbox(bbox: str, splitter: str = ",") -> list[float]:
    """Parse a pdfminer bbox attribute string ("x0,y0,x1,y1")."""
    return [float(v) for v in bbox.split(splitter)]
