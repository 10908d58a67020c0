"""
ReviewSession: the main entry point for reviewing a Word document.

A session loads a .docx into memory, applies text-level edits to the body
paragraphs as tracked changes and comments, and writes a new .docx in which
everything the edits did not touch is byte-for-byte the same as the input.
"""

import logging
from copy import deepcopy
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO

from lxml import etree

from .body import parse_paragraphs, scan_body
from .constants import DEFAULT_AUTHOR, DOCUMENT_PART, w
from .edits import (
    Comment,
    Deletion,
    Edit,
    Insertion,
    Replacement,
    ReviewEdits,
    edit_from_dict,
    load_edit_file,
)
from .errors import (
    DocxReviewError,
    EditValidationError,
    MalformedArchiveError,
    ParagraphIndexError,
    TextNotFoundError,
)
from .models.paragraph import Paragraph, has_ancestor
from .package import OOXMLPackage
from .reassembler import DocumentReassembler
from .results import BatchResult, CommitResult, EditResult
from .suggestions import SuggestionGenerator
from .text_search import REVISION_WRAPPERS, IsolatedSpan, TextSearch, TextSpan, insertion_slot
from .tracked_xml import RevisionIds, TrackedXMLGenerator

logger = logging.getLogger(__name__)


class ReviewSession:
    """An editing session over one Word document.

    Example:
        >>> session = ReviewSession.open("contract.docx", author="Legal Review")
        >>> print(session.numbered_text())
        >>> session.apply_edit(Replacement(3, "thirty (30) days", "sixty (60) days"))
        >>> session.apply_edit(Comment(5, "Licensee", "Define this term."))
        >>> session.save("contract_reviewed.docx")
    """

    def __init__(
        self,
        package: OOXMLPackage,
        author: str = DEFAULT_AUTHOR,
        initials: str | None = None,
        date: datetime | str | None = None,
    ) -> None:
        """Initialize a session over an opened package.

        Use `open()` or `from_bytes()` rather than calling this directly.

        Args:
            package: The loaded package
            author: Author written on every revision and comment
            initials: Comment initials (derived from author if None)
            date: Timestamp for all markup (defaults to now, UTC)

        Raises:
            MalformedArchiveError: If word/document.xml is missing or unusable
        """
        self._package = package
        self._search = TextSearch()
        self._new_comments: list[etree._Element] = []

        data = package.get_part(DOCUMENT_PART)
        if data is None:
            raise MalformedArchiveError(f"Package has no {DOCUMENT_PART}")
        try:
            self._document_xml = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedArchiveError(f"{DOCUMENT_PART} is not UTF-8 encoded") from e

        self._paragraphs = parse_paragraphs(self._document_xml, scan_body(self._document_xml))
        roots = self._scan_roots()
        self._ids = RevisionIds.from_parts(roots, roots)
        self._generator = TrackedXMLGenerator(self._ids, author=author, date=date, initials=initials)

        logger.debug(
            f"Loaded {len(self._paragraphs)} paragraphs; next revision id "
            f"{self._ids.next_revision_id}, next comment id {self._ids.next_comment_id}"
        )

    @classmethod
    def open(cls, source: str | Path | BinaryIO, **kwargs: Any) -> "ReviewSession":
        """Load a session from a .docx path or binary file object."""
        return cls(OOXMLPackage.open(source), **kwargs)

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs: Any) -> "ReviewSession":
        """Load a session from the bytes of a .docx file."""
        return cls(OOXMLPackage.from_bytes(data), **kwargs)

    def _scan_roots(self) -> list[etree._Element]:
        """Parse the word/*.xml parts so new ids start after existing ones."""
        roots = []
        for name in self._package.part_names:
            if not (name.startswith("word/") and name.endswith(".xml")):
                continue
            try:
                root = self._package.get_xml_part(name)
            except etree.XMLSyntaxError as e:
                if name == DOCUMENT_PART:
                    raise MalformedArchiveError(f"{name} is not well-formed: {e}") from e
                logger.warning(f"Skipping unparseable part {name} while scanning ids: {e}")
                continue
            if root is not None:
                roots.append(root)
        return roots

    # ------------------------------------------------------------------
    # Reading

    @property
    def package(self) -> OOXMLPackage:
        return self._package

    @property
    def author(self) -> str:
        return self._generator.author

    @property
    def paragraphs(self) -> list[Paragraph]:
        """Body paragraphs in document order."""
        return list(self._paragraphs)

    @property
    def paragraph_count(self) -> int:
        return len(self._paragraphs)

    def paragraph(self, index: int) -> Paragraph:
        """Get a body paragraph by index.

        Raises:
            ParagraphIndexError: If the index is out of range
        """
        if not 0 <= index < len(self._paragraphs):
            raise ParagraphIndexError(index, len(self._paragraphs))
        return self._paragraphs[index]

    def paragraph_texts(self) -> list[str]:
        """Current (live) text of each paragraph."""
        return [p.text for p in self._paragraphs]

    def numbered_text(self, label: str = "Paragraph") -> str:
        """Render the paragraphs as "[Paragraph i] text" blocks.

        This is the listing a reviewer (or a review model) uses to address
        edits by paragraph index.
        """
        return "\n\n".join(f"[{label} {p.index}] {p.text}" for p in self._paragraphs)

    @property
    def has_changes(self) -> bool:
        """Whether there are edits not yet committed to the package."""
        return bool(self._new_comments) or any(p.is_modified for p in self._paragraphs)

    # ------------------------------------------------------------------
    # Editing

    def apply_edit(self, edit: Edit, index: int = 0) -> EditResult:
        """Apply one edit.

        Text that does not occur in the paragraph is reported as a failed
        result. An edit that fails for any reason leaves the paragraph as it
        was before the edit.

        Args:
            edit: A Deletion, Insertion, Replacement or Comment
            index: Position of the edit in its batch (recorded on the result)

        Returns:
            EditResult for the edit

        Raises:
            ParagraphIndexError: If the edit names a paragraph that does not exist
            EditValidationError: If the new text cannot be written as XML
        """
        paragraph = self.paragraph(edit.paragraph_index)
        snapshot = deepcopy(paragraph.element)

        try:
            if isinstance(edit, Deletion):
                result = self._delete(paragraph, edit)
            elif isinstance(edit, Insertion):
                result = self._insert(paragraph, edit)
            elif isinstance(edit, Replacement):
                result = self._replace(paragraph, edit)
            elif isinstance(edit, Comment):
                result = self._comment(paragraph, edit)
            else:
                raise EditValidationError(f"Unsupported edit: {edit!r}")
        except TextNotFoundError as e:
            logger.warning(f"Skipping {edit.edit_type} edit {index}: {e.args[0].splitlines()[0]}")
            return EditResult(
                success=False,
                edit_type=edit.edit_type,
                message=str(e),
                edit=edit,
                index=index,
                error=e,
            )
        except Exception:
            paragraph.restore(snapshot)
            raise

        paragraph.mark_modified()
        result.index = index
        if edit.reason:
            logger.debug(f"Applied {edit.edit_type} in paragraph {paragraph.index}: {edit.reason}")
        else:
            logger.debug(f"Applied {edit.edit_type} in paragraph {paragraph.index}")
        return result

    def apply_edits(
        self, edits: list[Edit | dict[str, Any]], stop_on_error: bool = False
    ) -> BatchResult:
        """Apply edits in order, collecting a result for each.

        Each edit is matched against the paragraph text left by the edits
        before it. Failures (text not found, bad index, malformed edit
        dictionaries) are recorded and do not stop the batch unless
        stop_on_error is set.

        Args:
            edits: Edit objects or edit dictionaries (see edit_from_dict)
            stop_on_error: If True, stop processing on first failure

        Returns:
            BatchResult with one EditResult per processed edit
        """
        batch = BatchResult(requested=len(edits))

        for i, edit in enumerate(edits):
            try:
                if isinstance(edit, dict):
                    edit = edit_from_dict(edit)
                result = self.apply_edit(edit, index=i)
            except DocxReviewError as e:
                if isinstance(edit, dict):
                    edit_type = str(edit.get("type") or "unknown")
                else:
                    edit_type = edit.edit_type
                logger.warning(f"Skipping {edit_type} edit {i}: {e}")
                result = EditResult(
                    success=False,
                    edit_type=edit_type,
                    message=str(e),
                    edit=None if isinstance(edit, dict) else edit,
                    index=i,
                    error=e,
                )

            batch.results.append(result)
            if not result.success and stop_on_error:
                break

        logger.debug(batch.summary)
        return batch

    def apply_review(self, review: ReviewEdits | dict[str, Any] | str) -> BatchResult:
        """Apply a grouped review payload.

        Groups are applied replacements first, then deletions, insertions
        and comments.

        Args:
            review: ReviewEdits, its dictionary form, or a model response
                containing the JSON object
        """
        if isinstance(review, str):
            review = ReviewEdits.from_json(review)
        elif isinstance(review, dict):
            review = ReviewEdits.from_dict(review)

        if review.summary:
            logger.debug(f"Review summary: {review.summary}")
        return self.apply_edits(review.ordered())

    def apply_edit_file(self, path: str | Path, stop_on_error: bool = False) -> BatchResult:
        """Apply edits loaded from a YAML or JSON file (see load_edit_file)."""
        return self.apply_edits(load_edit_file(path), stop_on_error=stop_on_error)

    def _locate(self, paragraph: Paragraph, text: str) -> TextSpan:
        span = self._search.locate(paragraph, text)
        if span is None:
            suggestions = SuggestionGenerator.generate_suggestions(text, paragraph, self._paragraphs)
            raise TextNotFoundError(text, paragraph.index, suggestions)
        return span

    def _delete(self, paragraph: Paragraph, edit: Deletion) -> EditResult:
        isolated = self._search.isolate(self._locate(paragraph, edit.original_text))
        ids = self._delete_groups(isolated, isolated.groups)
        return EditResult(
            success=True,
            edit_type=edit.edit_type,
            message=f"Deleted '{edit.original_text}' in paragraph {paragraph.index}",
            edit=edit,
            revision_ids=ids,
        )

    def _delete_groups(self, isolated: IsolatedSpan, groups: list[list[etree._Element]]) -> list[int]:
        ids = []
        for group in groups:
            (deletion,) = isolated.replace_group(
                group, lambda runs: [self._generator.create_deletion(runs)]
            )
            ids.append(int(deletion.get(w("id"))))
        return ids

    def _replace(self, paragraph: Paragraph, edit: Replacement) -> EditResult:
        isolated = self._search.isolate(self._locate(paragraph, edit.original_text))
        source = isolated.runs[0]
        *leading, last = isolated.groups

        ids = self._delete_groups(isolated, leading)
        deletion, insertion = isolated.replace_group(
            last,
            lambda runs: self._generator.create_replacement(runs, edit.new_text, source_run=source),
        )
        if has_ancestor(insertion, REVISION_WRAPPERS, paragraph.element):
            # Keep the insertion out of any enclosing w:ins
            insertion.getparent().remove(insertion)
            self._place_after(deletion, [insertion])
        ids.extend([int(deletion.get(w("id"))), int(insertion.get(w("id")))])

        return EditResult(
            success=True,
            edit_type=edit.edit_type,
            message=(
                f"Replaced '{edit.original_text}' with '{edit.new_text}' "
                f"in paragraph {paragraph.index}"
            ),
            edit=edit,
            revision_ids=ids,
        )

    def _insert(self, paragraph: Paragraph, edit: Insertion) -> EditResult:
        if not edit.after_text:
            runs = paragraph.runs()
            insertion = self._generator.create_insertion(
                edit.new_text, source_run=runs[0] if runs else None
            )
            element = paragraph.element
            properties = element.find(w("pPr"))
            element.insert(0 if properties is None else element.index(properties) + 1, insertion)
            where = "at start of"
        else:
            span = self._locate(paragraph, edit.after_text)
            isolated = self._search.isolate(span, split_start=False)
            anchor = isolated.runs[-1]
            insertion = self._generator.create_insertion(edit.new_text, source_run=anchor)
            self._place_after(anchor, [insertion])
            where = f"after '{edit.after_text}' in"

        return EditResult(
            success=True,
            edit_type=edit.edit_type,
            message=f"Inserted '{edit.new_text}' {where} paragraph {paragraph.index}",
            edit=edit,
            revision_ids=[int(insertion.get(w("id")))],
        )

    def _place_after(self, anchor: etree._Element, elements: list[etree._Element]) -> None:
        parent, position = insertion_slot(anchor, after=True, next_revision_id=self._ids.revision)
        for offset, elem in enumerate(elements):
            parent.insert(position + offset, elem)

    def _comment(self, paragraph: Paragraph, edit: Comment) -> EditResult:
        isolated = self._search.isolate(self._locate(paragraph, edit.target_text))
        markup = self._generator.create_comment(edit.comment_body)
        isolated.insert_before([markup.range_start])
        isolated.insert_after([markup.range_end, markup.reference_run])
        self._new_comments.append(markup.comment)

        return EditResult(
            success=True,
            edit_type=edit.edit_type,
            message=f"Commented on '{edit.target_text}' in paragraph {paragraph.index}",
            edit=edit,
            comment_id=markup.comment_id,
        )

    # ------------------------------------------------------------------
    # Output

    def commit(self) -> CommitResult:
        """Write pending edits into the package.

        The session stays usable: paragraphs are re-read from the committed
        document, and ids keep counting from where they were.
        """
        result = DocumentReassembler(self._package).commit(
            self._document_xml, self._paragraphs, self._new_comments
        )
        self._new_comments = []
        if result.paragraphs_replaced:
            self._document_xml = result.document_xml
            self._paragraphs = parse_paragraphs(self._document_xml)
        logger.debug(str(result))
        return result

    def to_bytes(self) -> bytes:
        """Commit pending edits and serialize the package as .docx bytes."""
        if self.has_changes:
            self.commit()
        return self._package.save_to_bytes()

    def save(self, output_path: str | Path) -> None:
        """Commit pending edits and write the .docx to a file."""
        Path(output_path).write_bytes(self.to_bytes())
        logger.debug(f"Saved document to {output_path}")
