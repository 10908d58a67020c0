"""
XML generation for tracked changes and comments in Word documents.

This module provides the TrackedXMLGenerator class which generates proper
OOXML for tracked insertions, deletions, replacements and comment anchors
with all required attributes. Ids are drawn from a RevisionIds counter that
belongs to one editing session, so two sessions never share id allocation.
"""

import re
from collections.abc import Iterable
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime, timezone

from lxml import etree

from .constants import DATE_FORMAT, DEFAULT_AUTHOR, NSMAP, REVISION_TAGS, w, xml_attr
from .errors import EditValidationError

# Characters XML 1.0 does not allow in text
_NON_XML_CHARS = re.compile(r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


@dataclass
class RevisionIds:
    """Session-scoped id allocator.

    Revision ids (w:ins, w:del and friends) and comment ids live in separate
    namespaces. Both only ever increase.

    Attributes:
        next_revision_id: Id handed out by the next revision() call
        next_comment_id: Id handed out by the next comment() call
    """

    next_revision_id: int = 1
    next_comment_id: int = 0

    def revision(self) -> int:
        """Allocate the next revision id."""
        value = self.next_revision_id
        self.next_revision_id += 1
        return value

    def comment(self) -> int:
        """Allocate the next comment id."""
        value = self.next_comment_id
        self.next_comment_id += 1
        return value

    @classmethod
    def from_parts(
        cls,
        revision_roots: Iterable[etree._Element],
        comment_roots: Iterable[etree._Element] = (),
    ) -> "RevisionIds":
        """Start both counters after the highest ids already in use.

        Args:
            revision_roots: XML roots to scan for revision-like w:id values
            comment_roots: XML roots to scan for comment ids (comments part,
                document body anchors)

        Returns:
            A RevisionIds that will not collide with existing ids
        """
        max_revision = 0
        for root in revision_roots:
            for tag in REVISION_TAGS:
                for elem in root.iter(w(tag)):
                    max_revision = max(max_revision, _int_id(elem))

        max_comment = -1
        for root in comment_roots:
            for tag in ("comment", "commentRangeStart", "commentReference"):
                for elem in root.iter(w(tag)):
                    max_comment = max(max_comment, _int_id(elem, default=-1))

        return cls(next_revision_id=max_revision + 1, next_comment_id=max_comment + 1)


def _int_id(elem: etree._Element, default: int = 0) -> int:
    """Read w:id as an int, ignoring non-numeric ids."""
    try:
        return int(elem.get(w("id"), default))
    except ValueError:
        return default


@dataclass
class CommentMarkup:
    """Elements produced for one comment.

    Attributes:
        comment_id: The allocated comment id
        range_start: w:commentRangeStart, placed before the first anchored run
        range_end: w:commentRangeEnd, placed after the last anchored run
        reference_run: w:r holding the w:commentReference, after range_end
        comment: w:comment element for word/comments.xml
    """

    comment_id: int
    range_start: etree._Element
    range_end: etree._Element
    reference_run: etree._Element
    comment: etree._Element


def check_text(text: str) -> str:
    """Reject text that cannot be written into an XML document.

    Raises:
        EditValidationError: If the text holds control characters other than
            tab, newline and carriage return
    """
    bad = _NON_XML_CHARS.search(text)
    if bad is not None:
        raise EditValidationError(
            f"Text contains a character not allowed in XML: {bad.group(0)!r}"
        )
    return text


def _set_text(elem: etree._Element, text: str) -> None:
    """Set text on a w:t/w:delText, preserving leading/trailing whitespace."""
    elem.text = text
    if text and (text[0].isspace() or text[-1].isspace()):
        elem.set(xml_attr("space"), "preserve")


def default_initials(author: str) -> str:
    """Derive comment initials from an author name."""
    initials = "".join(word[0].upper() for word in author.split() if word)
    if not initials:
        initials = author[:2].upper() if author else "AU"
    return initials


class TrackedXMLGenerator:
    """Generates OOXML for tracked changes with auto-managed attributes.

    This class handles the generation of valid <w:ins>, <w:del> and comment
    elements with all required attributes:
    - Session-scoped change and comment IDs
    - ISO 8601 timestamps (one timestamp per session)
    - Author information
    - xml:space preservation for leading/trailing whitespace

    Example:
        >>> gen = TrackedXMLGenerator(RevisionIds(), author="Editor")
        >>> ins = gen.create_insertion("new text")
        >>> gen.to_xml(ins)
    """

    def __init__(
        self,
        ids: RevisionIds,
        author: str = DEFAULT_AUTHOR,
        date: datetime | str | None = None,
        initials: str | None = None,
    ) -> None:
        """Initialize the XML generator.

        Args:
            ids: The session's id allocator
            author: Author name for tracked changes and comments
            date: Timestamp for all markup (datetime or preformatted string);
                aware datetimes are converted to UTC, naive ones taken as UTC;
                defaults to the current UTC time
            initials: Comment author initials (derived from author if None)
        """
        self.ids = ids
        self.author = author
        self.initials = initials or default_initials(author)
        if date is None:
            date = datetime.now(timezone.utc)
        if isinstance(date, datetime) and date.tzinfo is not None:
            date = date.astimezone(timezone.utc)
        self.date = date if isinstance(date, str) else date.strftime(DATE_FORMAT)

    def _revision_element(self, tag: str) -> etree._Element:
        """Create an empty w:ins/w:del with id, author and date set."""
        elem = etree.Element(w(tag), nsmap=NSMAP)
        elem.set(w("id"), str(self.ids.revision()))
        elem.set(w("author"), self.author)
        elem.set(w("date"), self.date)
        return elem

    def create_deletion(self, runs: list[etree._Element]) -> etree._Element:
        """Generate <w:del> around existing runs for a tracked deletion.

        The runs are moved into the returned element and their text is
        re-tagged as deleted text (w:t -> w:delText, w:instrText ->
        w:delInstrText). Formatting is left untouched.

        Args:
            runs: Detached w:r elements forming the deleted text

        Returns:
            The w:del element
        """
        deletion = self._revision_element("del")
        for run in runs:
            for child in run:
                if child.tag == w("t"):
                    child.tag = w("delText")
                elif child.tag == w("instrText"):
                    child.tag = w("delInstrText")
            deletion.append(run)
        return deletion

    def create_insertion(
        self, text: str, source_run: etree._Element | None = None
    ) -> etree._Element:
        """Generate <w:ins> XML for a tracked insertion.

        Newlines become <w:br/> and tabs become <w:tab/>.

        Args:
            text: The text to insert
            source_run: Optional run to copy formatting (w:rPr) from

        Returns:
            The w:ins element holding one new run

        Raises:
            EditValidationError: If the text cannot be written as XML
        """
        run = self.create_run(text, source_run)
        insertion = self._revision_element("ins")
        insertion.append(run)
        return insertion

    def create_replacement(
        self,
        runs: list[etree._Element],
        text: str,
        source_run: etree._Element | None = None,
    ) -> list[etree._Element]:
        """Generate a deletion followed by an insertion.

        The deletion is always first; viewers render the pair as one change
        only in that order.

        Args:
            runs: Detached runs holding the replaced text
            text: Replacement text
            source_run: Run to copy formatting from (defaults to the first run)

        Returns:
            [w:del, w:ins]

        Raises:
            EditValidationError: If the text cannot be written as XML; the
                runs are left untouched
        """
        check_text(text)
        if source_run is None and runs:
            source_run = runs[0]
        properties = _copy_properties(source_run)
        deletion = self.create_deletion(runs)
        insertion = self._revision_element("ins")
        insertion.append(self._build_run(text, properties))
        return [deletion, insertion]

    def create_run(self, text: str, source_run: etree._Element | None = None) -> etree._Element:
        """Generate a plain <w:r> copying formatting from an optional source run."""
        return self._build_run(text, _copy_properties(source_run))

    def _build_run(self, text: str, properties: etree._Element | None) -> etree._Element:
        check_text(text)
        run = etree.Element(w("r"), nsmap=NSMAP)
        if properties is not None:
            run.append(properties)

        buffer = []
        for char in text:
            if char in "\n\t":
                if buffer:
                    _set_text(etree.SubElement(run, w("t")), "".join(buffer))
                    buffer = []
                etree.SubElement(run, w("br") if char == "\n" else w("tab"))
            else:
                buffer.append(char)
        if buffer or len(run) == (1 if properties is not None else 0):
            _set_text(etree.SubElement(run, w("t")), "".join(buffer))
        return run

    def create_comment(self, body: str) -> CommentMarkup:
        """Generate the anchor markers and the body of a comment.

        Args:
            body: Comment text; each line becomes one comment paragraph

        Returns:
            CommentMarkup with the anchor elements and the w:comment element
        """
        check_text(body)
        comment_id = str(self.ids.comment())

        range_start = etree.Element(w("commentRangeStart"), nsmap=NSMAP)
        range_start.set(w("id"), comment_id)

        range_end = etree.Element(w("commentRangeEnd"), nsmap=NSMAP)
        range_end.set(w("id"), comment_id)

        reference_run = etree.Element(w("r"), nsmap=NSMAP)
        rpr = etree.SubElement(reference_run, w("rPr"))
        etree.SubElement(rpr, w("rStyle")).set(w("val"), "CommentReference")
        etree.SubElement(reference_run, w("commentReference")).set(w("id"), comment_id)

        comment = etree.Element(w("comment"), nsmap=NSMAP)
        comment.set(w("id"), comment_id)
        comment.set(w("author"), self.author)
        comment.set(w("date"), self.date)
        comment.set(w("initials"), self.initials)

        for line_no, line in enumerate(body.split("\n")):
            para = etree.SubElement(comment, w("p"))
            ppr = etree.SubElement(para, w("pPr"))
            etree.SubElement(ppr, w("pStyle")).set(w("val"), "CommentText")
            if line_no == 0:
                ref = etree.SubElement(para, w("r"))
                ref_rpr = etree.SubElement(ref, w("rPr"))
                etree.SubElement(ref_rpr, w("rStyle")).set(w("val"), "CommentReference")
                etree.SubElement(ref, w("annotationRef"))
            if line:
                run = etree.SubElement(para, w("r"))
                _set_text(etree.SubElement(run, w("t")), line)

        return CommentMarkup(int(comment_id), range_start, range_end, reference_run, comment)

    @staticmethod
    def to_xml(elements: etree._Element | list[etree._Element]) -> str:
        """Serialize one or more generated elements to an XML string."""
        if not isinstance(elements, list):
            elements = [elements]
        return "".join(etree.tostring(elem, encoding="unicode") for elem in elements)


def _copy_properties(source_run: etree._Element | None) -> etree._Element | None:
    """Copy a run's w:rPr without any tracked formatting change."""
    if source_run is None:
        return None
    rpr = source_run.find(w("rPr"))
    if rpr is None:
        return None
    rpr = deepcopy(rpr)
    for change in rpr.findall(w("rPrChange")):
        rpr.remove(change)
    rpr.tail = None
    return rpr
