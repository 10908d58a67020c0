"""
Document reassembly.

Writes edited paragraphs back into word/document.xml by substituting their
original fragments in the raw document text, and adds new comments to the
comments part together with the relationship and content type it needs.
Parts that did not change are left alone.
"""

import logging
import posixpath

from lxml import etree

from .constants import (
    COMMENTS_PART,
    CONTENT_TYPE_COMMENTS,
    DOCUMENT_PART,
    NSMAP,
    REL_TYPE_COMMENTS,
    w,
)
from .content_types import ContentTypeManager
from .errors import MalformedArchiveError, PackagingError
from .models.paragraph import Paragraph
from .package import OOXMLPackage
from .relationships import RelationshipManager
from .results import CommitResult

logger = logging.getLogger(__name__)


class DocumentReassembler:
    """Writes a session's edits back into its package.

    Example:
        >>> reassembler = DocumentReassembler(package)
        >>> result = reassembler.commit(document_xml, paragraphs, new_comments)
    """

    def __init__(self, package: OOXMLPackage) -> None:
        self._package = package

    def commit(
        self,
        document_xml: str,
        paragraphs: list[Paragraph],
        comments: list[etree._Element] | None = None,
    ) -> CommitResult:
        """Write modified paragraphs and new comments into the package.

        Args:
            document_xml: Text of word/document.xml the paragraphs were read from
            paragraphs: All body paragraphs, in document order
            comments: New w:comment elements to add to the comments part

        Returns:
            CommitResult describing what was written

        Raises:
            PackagingError: If a paragraph fragment cannot be found again
        """
        new_xml, replaced = self.substitute_paragraphs(document_xml, paragraphs)
        result = CommitResult(document_xml=new_xml, paragraphs_replaced=replaced)

        if replaced:
            self._package.set_part(DOCUMENT_PART, new_xml.encode("utf-8"))

        if comments:
            self._write_comments(comments, result)

        logger.debug(
            f"Committed {replaced} paragraph(s) and {len(comments or [])} comment(s)"
        )
        return result

    @staticmethod
    def substitute_paragraphs(document_xml: str, paragraphs: list[Paragraph]) -> tuple[str, int]:
        """Replace the original fragments of modified paragraphs.

        Paragraphs are walked in order with a cursor into the document text;
        each fragment is looked up from the cursor on, so identical paragraphs
        are matched to their own occurrence.

        Returns:
            (new document text, number of paragraphs substituted)
        """
        pieces = []
        cursor = 0
        replaced = 0
        for paragraph in paragraphs:
            position = document_xml.find(paragraph.original_xml, cursor)
            if position == -1:
                raise PackagingError(
                    f"Could not locate paragraph {paragraph.index} in word/document.xml"
                )
            end = position + len(paragraph.original_xml)
            if paragraph.is_modified:
                pieces.append(document_xml[cursor:position])
                pieces.append(paragraph.to_xml())
                replaced += 1
            else:
                pieces.append(document_xml[cursor:end])
            cursor = end

        pieces.append(document_xml[cursor:])
        return "".join(pieces), replaced

    def _write_comments(self, comments: list[etree._Element], result: CommitResult) -> None:
        """Append comments to the comments part, creating it if needed."""
        rels = RelationshipManager(self._package, DOCUMENT_PART)
        part_name = rels.target_part(REL_TYPE_COMMENTS) or COMMENTS_PART

        root = None
        if self._package.part_exists(part_name):
            try:
                root = self._package.get_xml_part(part_name)
            except etree.XMLSyntaxError as e:
                raise MalformedArchiveError(f"{part_name} is not well-formed: {e}") from e
        if root is None:
            root = etree.Element(w("comments"), nsmap=NSMAP)
            logger.debug(f"Creating comments part {part_name}")

        for comment in comments:
            root.append(comment)
        self._package.set_xml_part(part_name, root)

        _, added = rels.ensure(REL_TYPE_COMMENTS, posixpath.relpath(part_name, "word"))
        if added:
            rels.save()
            result.relationships_changed = True

        types = ContentTypeManager(self._package)
        if types.ensure_override(part_name, CONTENT_TYPE_COMMENTS):
            types.save()
            result.content_types_changed = True

        result.comments_part = part_name
        result.comments_xml = self._package.get_part(part_name)
