"""
Document body scanning.

lxml never reproduces a document byte-for-byte, so paragraphs are located in
the raw text of word/document.xml with a small tag tokenizer. Each direct
w:p child of w:body is captured verbatim, then parsed on its own into a
working element. Everything else in the body (tables, content controls,
section properties) is never touched.
"""

import logging
import re
from dataclasses import dataclass, field

from lxml import etree

from .constants import w
from .errors import MalformedArchiveError
from .models.paragraph import Paragraph

logger = logging.getLogger(__name__)

# Comments, CDATA, processing instructions and doctype are skipped; the last
# alternative matches start, end and empty-element tags. Attribute values are
# matched as quoted strings so a '>' inside a value does not end the tag.
_TOKEN_RE = re.compile(
    r"<!--.*?-->"
    r"|<!\[CDATA\[.*?\]\]>"
    r"|<\?.*?\?>"
    r"|<!DOCTYPE[^>]*>"
    r"|<(?P<close>/)?(?P<name>[^\s/>]+)"
    r"(?P<attrs>(?:\s+[^\s=/>]+\s*=\s*(?:\"[^\"]*\"|'[^']*'))*)"
    r"\s*(?P<empty>/)?>",
    re.DOTALL,
)


def start_tag_end(xml: str) -> int:
    """Return the offset just past the first element start tag in `xml`."""
    for match in _TOKEN_RE.finditer(xml):
        if match.group("name") is not None and not match.group("close"):
            return match.end()
    raise ValueError("No start tag found")


@dataclass
class BodyScan:
    """Positions of the body and its direct children in the document text.

    Attributes:
        document_xml: The full text of word/document.xml
        root_start_tag: The root element's start tag, verbatim
        root_name: The root element's qualified name as written (e.g. "w:document")
        child_spans: (start, end) offsets of each element child of w:body
        child_tags: Clark-notation tag of each element child of w:body
    """

    document_xml: str
    root_start_tag: str
    root_name: str
    child_spans: list[tuple[int, int]] = field(default_factory=list)
    child_tags: list[str] = field(default_factory=list)

    @property
    def paragraph_spans(self) -> list[tuple[int, int]]:
        """Spans of the body's direct w:p children."""
        return [
            span for span, tag in zip(self.child_spans, self.child_tags) if tag == w("p")
        ]

    def fragment(self, span: tuple[int, int]) -> str:
        """Get the verbatim text of a span."""
        return self.document_xml[span[0] : span[1]]


def _parse_document(document_xml: str) -> etree._Element:
    """Parse the main document part, raising MalformedArchiveError on failure."""
    parser = etree.XMLParser(remove_blank_text=False, resolve_entities=False)
    try:
        return etree.fromstring(document_xml.encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        raise MalformedArchiveError(f"word/document.xml is not well-formed: {e}") from e


def scan_body(document_xml: str) -> BodyScan:
    """Locate the body's direct children in the raw document text.

    Args:
        document_xml: Text of word/document.xml

    Returns:
        BodyScan with verbatim offsets of every body child

    Raises:
        MalformedArchiveError: If the XML is not well-formed, has no w:body,
            or the tokenizer cannot be reconciled with the parsed tree
    """
    root = _parse_document(document_xml)

    root_children = [child for child in root if isinstance(child.tag, str)]
    body_index = next(
        (i for i, child in enumerate(root_children) if child.tag == w("body")), None
    )
    if body_index is None:
        raise MalformedArchiveError("word/document.xml has no w:body element")
    body = root_children[body_index]
    body_tags = [child.tag for child in body if isinstance(child.tag, str)]

    root_start_tag = ""
    root_name = ""
    depth = 0
    root_child = -1
    in_body = False
    child_start: int | None = None
    spans: list[tuple[int, int]] = []

    for match in _TOKEN_RE.finditer(document_xml):
        name = match.group("name")
        if name is None:
            continue

        if match.group("close"):
            depth -= 1
            if in_body and depth == 2 and child_start is not None:
                spans.append((child_start, match.end()))
                child_start = None
            elif in_body and depth == 1:
                break
            continue

        empty = match.group("empty") is not None
        if depth == 0 and not root_start_tag:
            root_start_tag = match.group(0)
            root_name = name
        elif depth == 1:
            root_child += 1
            if root_child == body_index and not empty:
                in_body = True
        elif depth == 2 and in_body:
            if empty:
                spans.append((match.start(), match.end()))
            else:
                child_start = match.start()

        if not empty:
            depth += 1

    if len(spans) != len(body_tags):
        raise MalformedArchiveError(
            f"Could not map body children ({len(spans)} scanned, {len(body_tags)} parsed)"
        )

    return BodyScan(
        document_xml=document_xml,
        root_start_tag=root_start_tag,
        root_name=root_name,
        child_spans=spans,
        child_tags=body_tags,
    )


def parse_fragment(scan: BodyScan, fragment: str) -> etree._Element:
    """Parse a body child fragment inside a copy of the root start tag.

    The root tag carries the namespace declarations the fragment relies on.
    The returned element stays attached to that wrapper root.
    """
    wrapped = f"{scan.root_start_tag}{fragment}</{scan.root_name}>"
    parser = etree.XMLParser(remove_blank_text=False, resolve_entities=False)
    try:
        wrapper = etree.fromstring(wrapped.encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        raise MalformedArchiveError(f"Could not parse paragraph fragment: {e}") from e
    return wrapper[0]


def parse_paragraphs(document_xml: str, scan: BodyScan | None = None) -> list[Paragraph]:
    """Parse the body of a document into an ordered list of paragraphs.

    Args:
        document_xml: Text of word/document.xml
        scan: A BodyScan already computed for document_xml (optional)

    Returns:
        One Paragraph per direct w:p child of w:body; empty if there are none
    """
    if scan is None:
        scan = scan_body(document_xml)

    paragraphs = []
    for index, span in enumerate(scan.paragraph_spans):
        fragment = scan.fragment(span)
        paragraphs.append(Paragraph(index, fragment, parse_fragment(scan, fragment)))

    logger.debug(f"Parsed {len(paragraphs)} paragraphs from {len(scan.child_spans)} body children")
    return paragraphs
