"""
Tests for the document object model.
"""

from doc_pipeline.geometry import BoundingBox
from doc_pipeline.models import (
    Document,
    Image,
    LinkInfo,
    Page,
    TableOfContents,
    Word,
)


class TestWord:
    """Tests for Word."""

    def test_text(self, make_word):
        """Test plain text rendering."""
        assert make_word("hello").to_string() == "hello"
        assert str(make_word("hello")) == "hello"

    def test_box_from_characters(self, make_word):
        """Test that the word box covers its characters."""
        word = make_word("abc", left=5, top=7)
        assert word.box == BoundingBox(left=5, top=7, width=30, height=10)

    def test_link_rendering(self, make_word):
        """Test Markdown and HTML rendering of a linked word."""
        word = make_word("docs")
        word.properties.link = LinkInfo(markdown="[docs](https://x.org)", target_url="https://x.org")
        assert word.to_markdown() == "[docs](https://x.org)"
        assert word.to_html() == '<a href="https://x.org">docs</a>'

    def test_html_escaped(self, make_word):
        """Test that HTML rendering escapes the text."""
        assert make_word("a<b").to_html() == "a&lt;b"

    def test_no_link_by_default(self, make_word):
        """Test that a fresh word carries no derived facts."""
        assert make_word("x").properties.link is None


class TestTableOfContents:
    """Tests for TableOfContents."""

    def test_items_derived_on_construction(self, make_word):
        """Test that items follow the initial content."""
        toc = TableOfContents(content=[make_word("Intro"), make_word("Usage")])
        assert [item.description for item in toc.items] == ["Intro", "Usage"]

    def test_in_place_mutation_leaves_items_stale(self, make_word):
        """Test that only set_content recomputes items."""
        toc = TableOfContents(content=[make_word("Intro")])
        toc.content.append(make_word("Usage"))
        assert len(toc.items) == 1

        toc.set_content(toc.content)
        assert len(toc.items) == 2

    def test_rendering(self, make_word):
        """Test Markdown rendering of the items."""
        toc = TableOfContents(content=[make_word("Intro")])
        assert toc.to_markdown() == "- Intro"
        assert toc.to_string() == "Intro"


class TestDocument:
    """Tests for Page and Document queries."""

    def test_elements_of_type(self, make_word, make_document):
        """Test filtering elements by type."""
        image = Image(box=BoundingBox(left=0, top=0, width=5, height=5), src="a.png")
        doc = make_document([make_word("a"), image, make_word("b")])
        assert [w.to_string() for w in doc.get_elements_of_type(Word)] == ["a", "b"]
        assert doc.get_elements_of_type(Image) == [image]

    def test_elements_of_type_recursive(self, make_word, make_document):
        """Test descending into composite elements."""
        toc = TableOfContents(content=[make_word("nested")])
        doc = make_document([make_word("top"), toc])
        assert len(doc.get_elements_of_type(Word, recursive=True)) == 2
        assert len(doc.get_elements_of_type(Word, recursive=False)) == 1

    def test_counts(self, make_word, make_document):
        """Test word and link counters."""
        linked = make_word("x")
        linked.properties.link = LinkInfo(markdown="[x](#a)", target_url="#a")
        doc = make_document([linked, make_word("y")])
        assert doc.word_count == 2
        assert doc.link_count == 1

    def test_text_rendering(self, make_word):
        """Test text rendering across pages."""
        box = BoundingBox(left=0, top=0, width=10, height=10)
        doc = Document(
            input_file="a.pdf",
            pages=[
                Page(page_number=1, box=box, elements=[make_word("one"), make_word("two")]),
                Page(page_number=2, box=box, elements=[make_word("three")]),
            ],
        )
        assert doc.to_text() == "one two\n\nthree"
        assert 'id="page-2"' in doc.to_html()

    def test_json_round_trip(self, make_word, make_document):
        """Test that element variants survive JSON serialization."""
        image = Image(box=BoundingBox(left=0, top=0, width=5, height=5), src="a.png")
        toc = TableOfContents(content=[make_word("Intro")])
        doc = make_document([make_word("a"), image, toc])

        restored = Document.model_validate_json(doc.to_json())
        elements = restored.pages[0].elements
        assert isinstance(elements[0], Word)
        assert isinstance(elements[1], Image)
        assert isinstance(elements[2], TableOfContents)
        assert elements[2].items[0].description == "Intro"
