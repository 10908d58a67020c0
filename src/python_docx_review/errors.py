"""
Custom exception classes for python_docx_review package.

Per-edit problems (text not found, paragraph index out of range) are
recoverable and get reported on the edit's result. Archive-level problems
abort the whole session.
"""


class DocxReviewError(Exception):
    """Base exception for all python_docx_review errors."""

    pass


class TextNotFoundError(DocxReviewError):
    """Raised when a literal text does not occur in the targeted paragraph.

    Attributes:
        text: The text that was being searched for
        paragraph_index: Index of the paragraph that was searched
        suggestions: List of helpful suggestions for resolving the issue
    """

    def __init__(
        self,
        text: str,
        paragraph_index: int | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        self.text = text
        self.paragraph_index = paragraph_index
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format a helpful error message with suggestions."""
        msg = f"Could not find '{self.text}'"
        if self.paragraph_index is not None:
            msg += f" in paragraph {self.paragraph_index}"

        if self.suggestions:
            msg += "\n\nSuggestions:\n"
            for suggestion in self.suggestions:
                msg += f"  • {suggestion}\n"

        return msg


class ParagraphIndexError(DocxReviewError, IndexError):
    """Raised when an edit names a paragraph index the document does not have.

    Attributes:
        index: The requested paragraph index
        count: Number of paragraphs in the document body
    """

    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.count == 0:
            return f"Paragraph index {self.index} out of range (document has no paragraphs)"
        return f"Paragraph index {self.index} out of range (0-{self.count - 1})"


class MalformedArchiveError(DocxReviewError):
    """Raised when the input is not a usable word-processing package.

    This can occur when:
    - The input is not a ZIP archive
    - word/document.xml is missing
    - The main document part is not well-formed XML or has no body

    Attributes:
        errors: List of specific error messages (optional)
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class PackagingError(DocxReviewError):
    """Raised when the modified archive cannot be serialized."""

    pass


class EditValidationError(DocxReviewError):
    """Raised when an edit request or edit file is malformed."""

    pass
