"""
Pytest fixtures for document pipeline tests.
"""

import pytest

from doc_pipeline.geometry import BoundingBox, Font
from doc_pipeline.layout import CharSlot
from doc_pipeline.models import Character, Document, Page, Word


@pytest.fixture
def regular_font():
    """Create a regular black Helvetica font."""
    return Font(family="ABCDEF+Helvetica", size=12.0)


@pytest.fixture
def bold_font():
    """Create a bold Helvetica font."""
    return Font(family="ABCDEF+Helvetica-Bold", size=12.0, weight="bold")


@pytest.fixture
def make_slot():
    """Factory for a concrete character slot, 10pt wide, on a 100pt high page."""

    def _make(char, x0, font="ABCDEF+Helvetica", size="12.0", y0=80.0, y1=90.0):
        return CharSlot(
            text=char,
            attributes={
                "font": font,
                "size": size,
                "bbox": f"{x0},{y0},{x0 + 10},{y1}",
                "ncolour": "[0, 0, 0]",
            },
        )

    return _make


@pytest.fixture
def make_word(regular_font):
    """Factory for a word laid out left to right inside `box`."""

    def _make(text, left=0.0, top=0.0, width=None, height=10.0):
        width = width if width is not None else 10.0 * len(text)
        char_width = width / len(text)
        characters = [
            Character(
                box=BoundingBox(left=left + i * char_width, top=top, width=char_width, height=height),
                content=char,
                font=regular_font,
            )
            for i, char in enumerate(text)
        ]
        return Word.from_characters(characters, regular_font)

    return _make


@pytest.fixture
def make_document():
    """Factory for a one-page document holding the given elements."""

    def _make(elements, input_file="sample.pdf", width=612.0, height=792.0):
        page = Page(
            page_number=1,
            box=BoundingBox(left=0.0, top=0.0, width=width, height=height),
            elements=list(elements),
        )
        return Document(pages=[page], input_file=input_file)

    return _make


@pytest.fixture
def pdfminer_xml():
    """pdf2txt XML for one page: 'Hi you' and one figure."""
    return """<pages>
<page id="1" bbox="0.000,0.000,612.000,792.000" rotate="0">
<textbox id="0" bbox="72.000,700.000,132.000,712.000">
<textline bbox="72.000,700.000,132.000,712.000">
<text font="ABCDEF+Helvetica" bbox="72.000,700.000,82.000,712.000" ncolour="[0, 0, 0]" size="12.000">H</text>
<text font="ABCDEF+Helvetica" bbox="82.000,700.000,92.000,712.000" ncolour="[0, 0, 0]" size="12.000">i</text>
<text> </text>
<text font="ABCDEF+Helvetica-Bold" bbox="102.000,700.000,112.000,712.000" ncolour="[0, 0, 0]" size="12.000">y</text>
<text font="ABCDEF+Helvetica-Bold" bbox="112.000,700.000,122.000,712.000" ncolour="[0, 0, 0]" size="12.000">o</text>
<text font="ABCDEF+Helvetica-Bold" bbox="122.000,700.000,132.000,712.000" ncolour="[0, 0, 0]" size="12.000">u</text>
<text>
</text>
</textline>
</textbox>
<figure name="Im1" bbox="100.000,100.000,300.000,200.000">
<image width="200" height="100" src="Im1.png" />
</figure>
</page>
</pages>
"""


@pytest.fixture
def dumppdf_xml():
    """dumppdf -a output: one page with a URI link and a nested GoTo link."""
    return """<pdf>
<object id="1">
<dict size="2">
<key>Type</key><value><literal>Catalog</literal></value>
<key>Pages</key><value><ref id="2" /></value>
</dict>
</object>
<object id="2">
<dict size="3">
<key>Type</key><value><literal>Pages</literal></value>
<key>Kids</key><value><list size="1"><ref id="3" /></list></value>
<key>Count</key><value><number>1</number></value>
</dict>
</object>
<object id="3">
<dict size="4">
<key>Type</key><value><literal>Page</literal></value>
<key>Parent</key><value><ref id="2" /></value>
<key>MediaBox</key><value><list size="4"><number>0</number><number>0</number><number>612</number><number>792</number></list></value>
<key>Annots</key><value><list size="2"><ref id="7" /><ref id="8" /></list></value>
</dict>
</object>
<object id="7">
<dict size="4">
<key>Type</key><value><literal>Annot</literal></value>
<key>Subtype</key><value><literal>Link</literal></value>
<key>Rect</key><value><list size="4"><number>100</number><number>700</number><number>200</number><number>720</number></list></value>
<key>A</key><value><dict size="2">
<key>S</key><value><literal>URI</literal></value>
<key>URI</key><value><string size="19">https://example.com</string></value>
</dict></value>
</dict>
</object>
<object id="8">
<list size="1"><ref id="9" /></list>
</object>
<object id="9">
<dict size="4">
<key>Type</key><value><literal>Annot</literal></value>
<key>Subtype</key><value><literal>Link</literal></value>
<key>Rect</key><value><list size="4"><number>300</number><number>700</number><number>400</number><number>720</number></list></value>
<key>A</key><value><dict size="2">
<key>S</key><value><literal>GoTo</literal></value>
<key>D</key><value><string size="8">chapter1</string></value>
</dict></value>
</dict>
</object>
</pdf>
"""
