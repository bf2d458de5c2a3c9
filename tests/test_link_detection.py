"""
Tests for the link detection module.
"""

import asyncio

import pytest

from doc_pipeline.exceptions import ExtractionFailedError, ToolNotFoundError
from doc_pipeline.geometry import BoundingBox
from doc_pipeline.modules import link_detection
from doc_pipeline.modules.link_detection import LinkDetectionModule, match_textual_link
from doc_pipeline.modules.pdf_links import LinkAnnotation


def annotation(target, left, top, width, height, action_type="URI", page_number=1):
    return LinkAnnotation(
        page_number=page_number,
        box=BoundingBox(left=left, top=top, width=width, height=height),
        action_type=action_type,
        target=target,
    )


def run_module(module, doc):
    return asyncio.run(module.main(doc))


@pytest.fixture
def with_annotations(monkeypatch):
    """Make metadata extraction return the given annotations."""

    def _set(annotations):
        async def fake_extract(self, input_file):
            return list(annotations)

        monkeypatch.setattr(LinkDetectionModule, "extract_links_from_metadata", fake_extract)

    return _set


class TestGeometricMatching:
    """Tests for annotation-to-word matching."""

    def test_covered_word_gets_link(self, make_word, make_document, with_annotations):
        """Test that an annotation covering 80% of a word links it."""
        word = make_word("click", left=0, top=0, width=10, height=10)
        with_annotations([annotation("https://a.example", left=2, top=0, width=20, height=10)])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.markdown == "[click](https://a.example)"
        assert word.properties.link.target_url == "https://a.example"

    def test_below_threshold(self, make_word, make_document, with_annotations):
        """Test that a mostly uncovered word is not linked."""
        word = make_word("click", left=0, top=0, width=10, height=10)
        with_annotations([annotation("https://a.example", left=5, top=0, width=20, height=10)])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link is None

    def test_last_matching_annotation_wins(self, make_word, make_document, with_annotations):
        """Test that later qualifying annotations overwrite earlier ones."""
        word = make_word("click", left=10, top=10, width=20, height=10)
        with_annotations([
            annotation("https://first.example", left=0, top=0, width=100, height=100),
            annotation("https://second.example", left=5, top=5, width=50, height=50),
        ])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.target_url == "https://second.example"

    def test_goto_renders_anchor(self, make_word, make_document, with_annotations):
        """Test that internal destinations become in-document anchors."""
        word = make_word("see", left=0, top=0)
        with_annotations([annotation("chapter1", 0, 0, 100, 100, action_type="GoTo")])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.markdown == "[see](#chapter1)"

    def test_other_page_ignored(self, make_word, make_document, with_annotations):
        """Test that annotations only apply to words of their own page."""
        word = make_word("click", left=0, top=0)
        with_annotations([annotation("https://a.example", 0, 0, 100, 100, page_number=2)])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link is None

    def test_custom_threshold(self, make_word, make_document, with_annotations):
        """Test the overlap threshold option."""
        word = make_word("click", left=0, top=0, width=10, height=10)
        with_annotations([annotation("https://a.example", left=2, top=0, width=20, height=10)])

        run_module(LinkDetectionModule({"overlap_threshold": 0.9}), make_document([word]))

        assert word.properties.link is None

    def test_no_elements_added(self, make_word, make_document, with_annotations):
        """Test that the module only annotates existing words."""
        doc = make_document([make_word("a"), make_word("https://x.example")])
        with_annotations([])

        result = run_module(LinkDetectionModule(), doc)

        assert result is doc
        assert len(doc.pages[0].elements) == 2


class TestTextualLinks:
    """Tests for the URL and e-mail fallback."""

    def test_url(self, make_word, make_document, with_annotations):
        """Test that a URL-looking word links to itself."""
        word = make_word("https://example.com")
        with_annotations([])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.markdown == "[https://example.com](https://example.com)"

    def test_email(self, make_word):
        """Test that an e-mail address becomes a mailto link."""
        link = match_textual_link(make_word("john.doe@example.com"))
        assert link.markdown == "[john.doe@example.com](mailto:john.doe@example.com)"
        assert link.target_url == "mailto:john.doe@example.com"

    def test_plain_word(self, make_word):
        """Test that ordinary words get no link at all."""
        assert match_textual_link(make_word("hello")) is None
        assert match_textual_link(make_word("example.com")) is None

    def test_geometry_takes_precedence(self, make_word, make_document, with_annotations):
        """Test that textual matching does not override an annotation link."""
        word = make_word("https://shown.example", left=0, top=0)
        with_annotations([annotation("https://real.example", 0, 0, 1000, 100)])

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.target_url == "https://real.example"

    def test_textual_links_disabled(self, make_word, make_document, with_annotations):
        """Test switching the textual fallback off."""
        word = make_word("https://example.com")
        with_annotations([])

        run_module(LinkDetectionModule({"detect_textual_links": False}), make_document([word]))

        assert word.properties.link is None


class TestMetadataExtraction:
    """Tests for the best-effort dumppdf step."""

    def test_parses_dump(self, monkeypatch, make_word, make_document, dumppdf_xml):
        """Test the module end to end over a dumppdf object graph."""
        async def fake_metadata(self, pdf_path):
            return dumppdf_xml

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", fake_metadata)
        url_word = make_word("site", left=110, top=75)
        anchor_word = make_word("here", left=310, top=75)

        run_module(LinkDetectionModule(), make_document([url_word, anchor_word]))

        assert url_word.properties.link.target_url == "https://example.com"
        assert anchor_word.properties.link.target_url == "#chapter1"

    def test_tool_not_found_degrades(self, monkeypatch, make_word, make_document):
        """Test that a missing dumppdf means zero annotations, not failure."""
        def missing(names, env_var=None):
            raise ToolNotFoundError(names[0])

        monkeypatch.setattr(link_detection, "require_command", missing)
        word = make_word("https://example.com")

        run_module(LinkDetectionModule(), make_document([word]))

        assert word.properties.link.target_url == "https://example.com"

    def test_tool_failure_degrades(self, monkeypatch):
        """Test that a failing dumppdf run yields no annotations."""
        async def failing(self, pdf_path):
            raise ExtractionFailedError("dumppdf.py", exit_code=1)

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", failing)

        result = asyncio.run(LinkDetectionModule().extract_links_from_metadata("a.pdf"))
        assert result == []

    def test_malformed_dump_degrades(self, monkeypatch):
        """Test that unparseable metadata yields no annotations."""
        async def garbage(self, pdf_path):
            return "<pdf><object"

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", garbage)

        result = asyncio.run(LinkDetectionModule().extract_links_from_metadata("a.pdf"))
        assert result == []

    def test_reads_rendered_pdf(self, monkeypatch, make_word, make_document, dumppdf_xml):
        """Test that a rendered e-mail's anchors link its words."""
        dumped = []

        async def fake_metadata(self, pdf_path):
            dumped.append(pdf_path)
            return dumppdf_xml

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", fake_metadata)
        word = make_word("click", left=110, top=75)
        doc = make_document([word], input_file="inbox/mail.eml")
        doc.source_pdf = "/tmp/doc_pipeline_mail.pdf"

        run_module(LinkDetectionModule({"detect_textual_links": False}), doc)

        assert dumped == ["/tmp/doc_pipeline_mail.pdf"]
        assert word.properties.link.target_url == "https://example.com"

    def test_unreadable_dump_degrades(self, monkeypatch):
        """Test that a file system error while reading the dump yields no annotations."""
        async def unreadable(self, pdf_path):
            raise PermissionError(pdf_path)

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", unreadable)

        result = asyncio.run(LinkDetectionModule().extract_links_from_metadata("a.pdf"))
        assert result == []

    def test_unexpected_error_propagates(self, monkeypatch):
        """Test that errors other than tool and input failures are not swallowed."""
        async def broken(self, pdf_path):
            raise KeyError("bug")

        monkeypatch.setattr(LinkDetectionModule, "get_file_metadata", broken)

        with pytest.raises(KeyError):
            asyncio.run(LinkDetectionModule().extract_links_from_metadata("a.pdf"))

    def test_non_pdf_input(self):
        """Test that non-PDF inputs skip metadata extraction."""
        result = asyncio.run(LinkDetectionModule().extract_links_from_metadata("scan.png"))
        assert result == []
