"""Tests for revision and comment markup generation."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import W_NS
from lxml import etree

from python_docx_review.constants import w, xml_attr
from python_docx_review.errors import EditValidationError
from python_docx_review.tracked_xml import (
    RevisionIds,
    TrackedXMLGenerator,
    check_text,
    default_initials,
)

DATE = "2024-03-01T12:00:00Z"


def make_run(text: str, bold: bool = False) -> etree._Element:
    rpr = "<w:rPr><w:b/></w:rPr>" if bold else ""
    return etree.fromstring(f'<w:r xmlns:w="{W_NS}">{rpr}<w:t>{text}</w:t></w:r>')


class TestRevisionIds:
    """Tests for the session id allocator."""

    def test_fresh_counters(self) -> None:
        ids = RevisionIds()
        assert [ids.revision(), ids.revision()] == [1, 2]
        assert [ids.comment(), ids.comment()] == [0, 1]

    def test_from_parts_starts_after_existing(self) -> None:
        document = etree.fromstring(
            f'<w:document xmlns:w="{W_NS}"><w:body><w:p>'
            '<w:ins w:id="4"/><w:del w:id="9"/><w:commentRangeStart w:id="2"/>'
            '<w:r><w:rPr><w:rPrChange w:id="6"/></w:rPr></w:r>'
            "</w:p></w:body></w:document>"
        )
        comments = etree.fromstring(f'<w:comments xmlns:w="{W_NS}"><w:comment w:id="5"/></w:comments>')

        ids = RevisionIds.from_parts([document], [document, comments])
        assert ids.next_revision_id == 10
        assert ids.next_comment_id == 6

    def test_non_numeric_ids_are_ignored(self) -> None:
        document = etree.fromstring(f'<w:p xmlns:w="{W_NS}"><w:ins w:id="x"/></w:p>')
        assert RevisionIds.from_parts([document]).next_revision_id == 1


class TestTrackedXMLGenerator:
    """Tests for TrackedXMLGenerator."""

    def make_generator(self, **kwargs) -> TrackedXMLGenerator:
        return TrackedXMLGenerator(RevisionIds(), author="Editor", date=DATE, **kwargs)

    def test_deletion(self) -> None:
        gen = self.make_generator()
        run = make_run("old")
        deletion = gen.create_deletion([run])

        assert deletion.tag == w("del")
        assert deletion.get(w("id")) == "1"
        assert deletion.get(w("author")) == "Editor"
        assert deletion.get(w("date")) == DATE
        assert deletion[0] is run
        assert run.find(w("t")) is None
        assert run.find(w("delText")).text == "old"

    def test_insertion_copies_formatting(self) -> None:
        gen = self.make_generator()
        insertion = gen.create_insertion(" new ", source_run=make_run("x", bold=True))

        run = insertion[0]
        assert run.find(f"{w('rPr')}/{w('b')}") is not None
        t = run.find(w("t"))
        assert t.text == " new "
        assert t.get(xml_attr("space")) == "preserve"

    def test_insertion_line_breaks_and_tabs(self) -> None:
        gen = self.make_generator()
        run = gen.create_insertion("a\nb\tc")[0]
        assert [etree.QName(child).localname for child in run] == ["t", "br", "t", "tab", "t"]

    def test_replacement_order(self) -> None:
        gen = self.make_generator()
        elements = gen.create_replacement([make_run("old", bold=True)], "new")

        assert [e.tag for e in elements] == [w("del"), w("ins")]
        assert [int(e.get(w("id"))) for e in elements] == [1, 2]
        assert elements[1][0].find(f"{w('rPr')}/{w('b')}") is not None

    def test_tracked_format_change_not_copied(self) -> None:
        gen = self.make_generator()
        source = etree.fromstring(
            f'<w:r xmlns:w="{W_NS}"><w:rPr><w:i/><w:rPrChange w:id="3"/></w:rPr></w:r>'
        )
        rpr = gen.create_run("x", source).find(w("rPr"))
        assert rpr.find(w("i")) is not None
        assert rpr.find(w("rPrChange")) is None

    def test_comment(self) -> None:
        gen = self.make_generator(initials="ED")
        markup = gen.create_comment("First line\nSecond line")

        assert markup.comment_id == 0
        for elem in (markup.range_start, markup.range_end, markup.comment):
            assert elem.get(w("id")) == "0"
        assert markup.reference_run.find(w("commentReference")).get(w("id")) == "0"
        assert markup.comment.get(w("initials")) == "ED"

        paragraphs = markup.comment.findall(w("p"))
        assert len(paragraphs) == 2
        assert paragraphs[0].find(f"{w('r')}/{w('annotationRef')}") is not None
        assert "".join(paragraphs[1].itertext()) == "Second line"

    def test_datetime_is_formatted(self) -> None:
        gen = TrackedXMLGenerator(
            RevisionIds(), date=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        )
        assert gen.date == "2024-05-06T07:08:09Z"
        assert gen.author == "Reviewer"

    def test_aware_datetime_is_converted_to_utc(self) -> None:
        date = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))
        gen = TrackedXMLGenerator(RevisionIds(), date=date)
        assert gen.date == "2024-01-01T07:00:00Z"

    def test_text_not_allowed_in_xml(self) -> None:
        gen = self.make_generator()
        run = make_run("old")

        with pytest.raises(EditValidationError, match=r"'\\x0b'"):
            gen.create_replacement([run], "fast\x0bslow")
        with pytest.raises(EditValidationError):
            gen.create_comment("bell\x07")

        assert run.find(w("t")).text == "old"
        assert gen.create_insertion("next").get(w("id")) == "1"
        assert gen.create_comment("fine").comment_id == 0
        assert check_text("tab\tand line\n") == "tab\tand line\n"

    def test_to_xml(self) -> None:
        gen = self.make_generator()
        xml = gen.to_xml(gen.create_insertion("hi"))
        assert xml.startswith("<w:ins ")
        assert "<w:t>hi</w:t>" in xml


class TestDefaultInitials:
    def test_initials(self) -> None:
        assert default_initials("Jane Q Public") == "JQP"
        assert default_initials("legal") == "L"
        assert default_initials("") == "AU"
