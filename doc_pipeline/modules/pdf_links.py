"""
Link annotations from pdfminer's `dumppdf.py -a` object-graph XML.

The dump lists every indirect object of the PDF as nested dictionaries,
lists and references:

    <pdf>
      <object id="3">
        <dict size="4">
          <key>Type</key><value><literal>Page</literal></value>
          <key>MediaBox</key><value><list size="4"><number>0</number>...</list></value>
          <key>Annots</key><value><list size="1"><ref id="7" /></list></value>
        </dict>
      </object>
      ...
    </pdf>

References are resolved with explicit worklists; a revisited object id is
reported as malformed output instead of looping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional
from xml.etree import ElementTree

from ..exceptions import MalformedToolOutputError
from ..geometry import BoundingBox, box_from_pdf_coords

logger = logging.getLogger(__name__)

TOOL_NAME = "dumppdf.py"

# Action types whose target is not stored under their own key.
ACTION_TARGET_KEYS = {"GoTo": "D"}


@dataclass(frozen=True)
class PdfRef:
    id: str


@dataclass(frozen=True)
class PdfLiteral:
    name: str


@dataclass(frozen=True)
class LinkAnnotation:
    """
    A link annotation on a page, in page space (top-left origin).

    Attributes:
        page_number: 1-indexed page the annotation belongs to
        box: Clickable area
        action_type: PDF action type ("URI", "GoTo", "Launch", ...)
        target: Raw action target (URI, destination name, ...)
    """

    page_number: int
    box: BoundingBox
    action_type: str
    target: str

    @property
    def url(self) -> str:
        """Target as used in links: internal destinations become anchors."""
        if self.action_type == "GoTo":
            return f"#{self.target}"
        return self.target


# =============================================================================
# XML -> OBJECT GRAPH
# =============================================================================


def _malformed(message: str, details: Optional[str] = None) -> MalformedToolOutputError:
    return MalformedToolOutputError(message, tool=TOOL_NAME, details=details)


def parse_value(node: ElementTree.Element) -> Any:
    """Convert one dumppdf value node into Python data."""
    tag = node.tag
    if tag == "dict":
        result: dict[str, Any] = {}
        key: Optional[str] = None
        for child in node:
            if child.tag == "key":
                key = (child.text or "").strip()
            elif child.tag == "value":
                if key is None:
                    raise _malformed("Dictionary value without a key")
                inner = list(child)
                result[key] = parse_value(inner[0]) if inner else (child.text or "").strip()
                key = None
        return result
    if tag == "list":
        return [parse_value(child) for child in node]
    if tag == "ref":
        ref_id = node.get("id")
        if ref_id is None:
            raise _malformed("Reference without an id")
        return PdfRef(ref_id)
    if tag == "literal":
        return PdfLiteral((node.text or "").strip())
    if tag == "string":
        return node.text or ""
    if tag == "number":
        try:
            return float(node.text or "")
        except ValueError as exc:
            raise _malformed("Invalid number", details=node.text) from exc
    if tag == "boolean":
        return (node.text or "").strip() == "true"
    if tag == "null":
        return None
    if tag == "stream":
        props = node.find("props")
        if props is not None and len(props):
            return parse_value(props[0])
        return {}
    return (node.text or "").strip()


def parse_objects(xml_text: str) -> dict[str, Any]:
    """Map object id -> parsed value, in document order."""
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as exc:
        raise _malformed("parseXml failed", details=str(exc)) from exc

    objects: dict[str, Any] = {}
    for obj in root.iter("object"):
        obj_id = obj.get("id")
        children = list(obj)
        if obj_id is None or not children:
            continue
        objects[obj_id] = parse_value(children[0])
    return objects


# =============================================================================
# GRAPH QUERIES
# =============================================================================


def _is_type(obj: Any, type_name: str) -> bool:
    return isinstance(obj, dict) and obj.get("Type") == PdfLiteral(type_name)


def _deref(value: Any, objects: dict[str, Any]) -> Any:
    """Follow a chain of references to a concrete value."""
    visited: set[str] = set()
    while isinstance(value, PdfRef):
        if value.id in visited:
            raise _malformed("Reference cycle", details=f"object {value.id}")
        visited.add(value.id)
        if value.id not in objects:
            raise _malformed("Dangling reference", details=f"object {value.id}")
        value = objects[value.id]
    return value


def resolve_dictionaries(value: Any, objects: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Resolve an annotation list to concrete dictionaries.

    `value` may be a reference, a list of references, or a reference to a
    further list, nested to any depth. Order is preserved.
    """
    resolved: list[dict[str, Any]] = []
    visited: set[str] = set()
    stack: list[Any] = [value]

    while stack:
        item = stack.pop()
        if isinstance(item, PdfRef):
            if item.id in visited:
                raise _malformed("Object visited twice while resolving annotations", details=f"object {item.id}")
            visited.add(item.id)
            if item.id not in objects:
                raise _malformed("Dangling reference", details=f"object {item.id}")
            stack.append(objects[item.id])
        elif isinstance(item, dict):
            resolved.append(item)
        elif isinstance(item, list):
            stack.extend(reversed(item))
        else:
            raise _malformed("Unexpected annotation entry", details=repr(item))

    return resolved


def page_order(objects: dict[str, Any]) -> list[str]:
    """
    Page object ids in reading order.

    Follows the page tree's Kids from its root when the dump contains a
    complete tree, otherwise falls back to the order pages appear in.
    """
    page_ids = [oid for oid, obj in objects.items() if _is_type(obj, "Page")]
    roots = [
        oid for oid, obj in objects.items()
        if _is_type(obj, "Pages") and "Parent" not in obj
    ]
    if len(roots) != 1:
        return page_ids

    ordered: list[str] = []
    visited: set[str] = set()
    stack: list[str] = [roots[0]]
    while stack:
        oid = stack.pop()
        if oid in visited:
            raise _malformed("Cycle in page tree", details=f"object {oid}")
        visited.add(oid)
        node = objects.get(oid)
        if _is_type(node, "Page"):
            ordered.append(oid)
            continue
        if not isinstance(node, dict):
            continue
        kids = _deref(node.get("Kids", []), objects)
        if not isinstance(kids, list):
            continue
        stack.extend(reversed([kid.id for kid in kids if isinstance(kid, PdfRef)]))

    if sorted(ordered) != sorted(page_ids):
        return page_ids
    return ordered


def _media_box(page: dict[str, Any], objects: dict[str, Any]) -> list[float]:
    # MediaBox is inheritable through the page tree.
    node: Any = page
    visited: set[int] = set()
    while isinstance(node, dict):
        if id(node) in visited:
            break
        visited.add(id(node))
        if "MediaBox" in node:
            box = _deref(node["MediaBox"], objects)
            try:
                values = [float(_deref(v, objects)) for v in box]
            except (TypeError, ValueError) as exc:
                raise _malformed("Invalid MediaBox", details=repr(box)) from exc
            if len(values) != 4:
                raise _malformed("Invalid MediaBox", details=repr(box))
            return values
        node = _deref(node["Parent"], objects) if "Parent" in node else None
    raise _malformed("Page without a MediaBox")


def _action_target(action: dict[str, Any], objects: dict[str, Any]) -> Optional[tuple[str, str]]:
    action_type = _deref(action.get("S"), objects)
    if not isinstance(action_type, PdfLiteral):
        return None
    key = ACTION_TARGET_KEYS.get(action_type.name, action_type.name)
    target = _deref(action.get(key), objects)
    if isinstance(target, PdfLiteral):
        target = target.name
    if not isinstance(target, str):
        return None
    return action_type.name, target


def _annotations_for_page(
    page: dict[str, Any],
    page_number: int,
    objects: dict[str, Any],
) -> Iterator[LinkAnnotation]:
    page_height = _media_box(page, objects)[3]

    for annot in resolve_dictionaries(page["Annots"], objects):
        rect = _deref(annot.get("Rect"), objects)
        action = _deref(annot.get("A"), objects)
        if not isinstance(rect, list) or len(rect) != 4 or not isinstance(action, dict):
            logger.debug(f"Skipping non-link annotation on page {page_number}")
            continue

        parsed = _action_target(action, objects)
        if parsed is None:
            logger.debug(f"Skipping annotation without a usable action on page {page_number}")
            continue
        action_type, target = parsed

        try:
            x0, y0, x1, y1 = (float(_deref(v, objects)) for v in rect)
        except (TypeError, ValueError) as exc:
            raise _malformed("Invalid annotation Rect", details=repr(rect)) from exc
        box = box_from_pdf_coords(
            [min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)],
            page_height,
        )
        yield LinkAnnotation(
            page_number=page_number,
            box=box,
            action_type=action_type,
            target=target,
        )


def parse_link_annotations(xml_text: str) -> list[LinkAnnotation]:
    """
    Extract every link annotation from a dumppdf XML dump.

    Raises:
        MalformedToolOutputError: on unparseable XML or a broken object graph
    """
    objects = parse_objects(xml_text)
    annotations: list[LinkAnnotation] = []

    for index, page_id in enumerate(page_order(objects), start=1):
        page = objects[page_id]
        if "Annots" not in page:
            continue
        annotations.extend(_annotations_for_page(page, index, objects))

    return annotations


def group_by_page(annotations: list[LinkAnnotation]) -> dict[int, list[LinkAnnotation]]:
    grouped: dict[int, list[LinkAnnotation]] = {}
    for annotation in annotations:
        grouped.setdefault(annotation.page_number, []).append(annotation)
    return grouped
