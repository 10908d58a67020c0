"""
python_docx_review - Apply review edits to Word documents as tracked changes.

This package takes a .docx and a batch of text-level edits (delete, insert,
replace, comment), each addressed to a body paragraph by index, and writes
them as tracked revisions and anchored comments. Everything the edits do not
touch is preserved byte-for-byte.

Example:
    >>> from python_docx_review import ReviewSession, Replacement
    >>> session = ReviewSession.open("contract.docx", author="Legal Review")
    >>> session.apply_edit(Replacement(3, "thirty (30) days", "sixty (60) days"))
    >>> session.save("contract_reviewed.docx")
"""

__version__ = "0.1.0"
__all__ = [
    "ReviewSession",
    "OOXMLPackage",
    "DocumentReassembler",
    "DocxReviewError",
    "TextNotFoundError",
    "ParagraphIndexError",
    "MalformedArchiveError",
    "PackagingError",
    "EditValidationError",
    "Deletion",
    "Insertion",
    "Replacement",
    "Comment",
    "ReviewEdits",
    "edit_from_dict",
    "load_edit_file",
    "TextSearch",
    "TextSpan",
    "IsolatedSpan",
    "TrackedXMLGenerator",
    "RevisionIds",
    "SuggestionGenerator",
    "EditResult",
    "BatchResult",
    "CommitResult",
    "Paragraph",
]

from .edits import (
    Comment,
    Deletion,
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
    PackagingError,
    ParagraphIndexError,
    TextNotFoundError,
)
from .models import Paragraph
from .package import OOXMLPackage
from .reassembler import DocumentReassembler
from .results import BatchResult, CommitResult, EditResult
from .session import ReviewSession
from .suggestions import SuggestionGenerator
from .text_search import IsolatedSpan, TextSearch, TextSpan
from .tracked_xml import RevisionIds, TrackedXMLGenerator
