"""Tests for body scanning and the Paragraph model."""

from copy import deepcopy

import pytest
from conftest import W_NS, document_xml

from python_docx_review.body import parse_paragraphs, scan_body, start_tag_end
from python_docx_review.constants import MC_NAMESPACE as MC_NS
from python_docx_review.errors import MalformedArchiveError
from python_docx_review.models.paragraph import Paragraph

TRACKED = (
    '<w:r><w:t xml:space="preserve">Pay within </w:t></w:r>'
    '<w:del w:id="1" w:author="A" w:date="2024-01-01T00:00:00Z">'
    "<w:r><w:delText>30</w:delText></w:r></w:del>"
    '<w:ins w:id="2" w:author="A" w:date="2024-01-01T00:00:00Z">'
    "<w:r><w:t>60</w:t></w:r></w:ins>"
    '<w:r><w:t xml:space="preserve"> days</w:t></w:r>'
)


class TestScanBody:
    """Tests for locating body children in the raw document text."""

    def test_fragments_are_verbatim(self) -> None:
        body = (
            '<w:p w:rsidR="00A1">\n  <w:r><w:t xml:space="preserve">  spaced  </w:t></w:r>\n</w:p>'
            "<w:p/>"
            "<w:sectPr><w:pgSz w:w=\"12240\"/></w:sectPr>"
        )
        xml = document_xml(body)
        scan = scan_body(xml)

        assert len(scan.child_spans) == 3
        assert scan.child_tags[2] == f"{{{W_NS}}}sectPr"
        fragments = [scan.fragment(span) for span in scan.paragraph_spans]
        assert fragments == [
            '<w:p w:rsidR="00A1">\n  <w:r><w:t xml:space="preserve">  spaced  </w:t></w:r>\n</w:p>',
            "<w:p/>",
        ]

    def test_attribute_with_angle_bracket(self) -> None:
        xml = document_xml('<w:p><w:r><w:t>a</w:t></w:r></w:p><w:p w:x="a&gt;b>c"/>')
        scan = scan_body(xml)
        assert scan.fragment(scan.child_spans[1]) == '<w:p w:x="a&gt;b>c"/>'

    def test_comments_and_cdata_are_skipped(self) -> None:
        xml = document_xml("<!-- <w:p> --><w:p><w:r><w:t><![CDATA[<w:p>]]></w:t></w:r></w:p>")
        scan = scan_body(xml)
        assert len(scan.paragraph_spans) == 1

    def test_missing_body(self) -> None:
        xml = f'<w:document xmlns:w="{W_NS}"></w:document>'
        with pytest.raises(MalformedArchiveError, match="no w:body"):
            scan_body(xml)

    def test_not_well_formed(self) -> None:
        with pytest.raises(MalformedArchiveError):
            scan_body(document_xml("<w:p><w:r></w:p>"))

    def test_start_tag_end(self) -> None:
        assert start_tag_end('<?xml version="1.0"?><root a="1"><x/></root>') == 33


class TestParseParagraphs:
    """Tests for parse_paragraphs()."""

    def test_only_direct_paragraphs(self) -> None:
        body = (
            "<w:p><w:r><w:t>First</w:t></w:r></w:p>"
            "<w:tbl><w:tr><w:tc><w:p><w:r><w:t>Cell</w:t></w:r></w:p></w:tc></w:tr></w:tbl>"
            "<w:p><w:r><w:t>Second</w:t></w:r></w:p>"
        )
        paragraphs = parse_paragraphs(document_xml(body))

        assert [p.text for p in paragraphs] == ["First", "Second"]
        assert [p.index for p in paragraphs] == [0, 1]

    def test_empty_body(self) -> None:
        assert parse_paragraphs(document_xml("")) == []

    def test_namespaces_from_root(self) -> None:
        """Fragments rely on declarations made on the document root."""
        paragraphs = parse_paragraphs(document_xml("<w:p><w:r><w:t>ok</w:t></w:r></w:p>"))
        assert paragraphs[0].element.tag == f"{{{W_NS}}}p"


class TestParagraphText:
    """Tests for the text readings of a paragraph."""

    def _paragraph(self, content: str) -> Paragraph:
        return parse_paragraphs(document_xml(f"<w:p>{content}</w:p>"))[0]

    def test_text_across_runs(self) -> None:
        para = self._paragraph("<w:r><w:t>Hello </w:t></w:r><w:r><w:t>world</w:t></w:r>")
        assert para.text == "Hello world"
        assert para.original_text == "Hello world"

    def test_tracked_changes(self) -> None:
        para = self._paragraph(TRACKED)
        assert para.text == "Pay within 60 days"
        assert para.raw_text == "Pay within 3060 days"
        assert para.rejected_text == "Pay within 30 days"

    def test_non_text_children_are_zero_width(self) -> None:
        para = self._paragraph(
            "<w:r><w:t>a</w:t><w:tab/><w:t>b</w:t><w:br/></w:r>"
            '<w:r><w:fldChar w:fldCharType="begin"/></w:r>'
        )
        assert para.text == "ab"

    def test_nested_paragraph_runs_are_skipped(self) -> None:
        para = self._paragraph(
            "<w:r><w:t>Outer</w:t></w:r>"
            "<w:r><w:drawing><w:txbxContent><w:p><w:r><w:t>Inner</w:t></w:r></w:p>"
            "</w:txbxContent></w:drawing></w:r>"
        )
        assert para.text == "Outer"

    def test_runs_in_hyperlinks_count(self) -> None:
        para = self._paragraph(
            '<w:r><w:t xml:space="preserve">See </w:t></w:r>'
            '<w:hyperlink r:id="rId9"><w:r><w:t>here</w:t></w:r></w:hyperlink>'
        )
        assert para.text == "See here"

    def test_fallback_runs_are_skipped(self) -> None:
        para = self._paragraph(
            '<w:r><w:t xml:space="preserve">before </w:t></w:r>'
            f'<mc:AlternateContent xmlns:mc="{MC_NS}">'
            "<mc:Choice Requires=\"wps\"><w:r><w:t>X</w:t></w:r></mc:Choice>"
            "<mc:Fallback><w:r><w:t>X</w:t></w:r></mc:Fallback>"
            "</mc:AlternateContent>"
        )
        assert para.text == "before X"
        assert para.raw_text == "before X"
        assert len(para.runs()) == 2


class TestParagraphXml:
    """Tests for serializing paragraphs."""

    def test_unmodified_returns_original(self) -> None:
        fragment = '<w:p   w:rsidR="1"><w:r><w:t>x</w:t></w:r></w:p>'
        para = parse_paragraphs(document_xml(fragment))[0]
        assert para.to_xml() == fragment
        assert para.is_modified is False

    def test_modified_has_no_namespace_declarations(self) -> None:
        para = parse_paragraphs(document_xml("<w:p><w:r><w:t>x</w:t></w:r></w:p>"))[0]
        para.element.find(f".//{{{W_NS}}}t").text = "y"
        para.mark_modified()

        xml = para.to_xml()
        assert xml == "<w:p><w:r><w:t>y</w:t></w:r></w:p>"

    def test_restore_swaps_working_element(self) -> None:
        para = parse_paragraphs(document_xml("<w:p><w:r><w:t>Keep</w:t></w:r></w:p>"))[0]
        saved = deepcopy(para.element)
        wrapper = para.element.getparent()
        para.element.remove(para.element[0])

        para.restore(saved)
        assert para.element is saved
        assert saved.getparent() is wrapper
        assert para.text == "Keep"

    def test_rejects_non_paragraph(self) -> None:
        from lxml import etree

        with pytest.raises(ValueError):
            Paragraph(0, "<w:r/>", etree.Element(f"{{{W_NS}}}r"))
