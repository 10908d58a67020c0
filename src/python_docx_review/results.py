"""
Result classes for document operations.

This module provides result types that track the success/failure of
review edits and what a commit changed in the package.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import TextNotFoundError

if TYPE_CHECKING:
    from .edits import Edit


@dataclass
class EditResult:
    """Result of applying a single edit.

    Attributes:
        success: Whether the edit was applied
        edit_type: "delete", "insert", "replace" or "comment"
        message: Human-readable message about the result
        edit: The edit request this result belongs to
        index: Position of the edit in the batch
        revision_ids: w:id values of the revisions the edit created
        comment_id: Id of the created comment (comment edits only)
        error: Exception that made the edit fail
    """

    success: bool
    edit_type: str
    message: str
    edit: "Edit | None" = None
    index: int = 0
    revision_ids: list[int] = field(default_factory=list)
    comment_id: int | None = None
    error: Exception | None = None

    @property
    def reason(self) -> str | None:
        """Provenance note carried by the edit request."""
        return getattr(self.edit, "reason", None)

    @property
    def suggestions(self) -> list[str]:
        """Suggestions attached to a not-found failure."""
        if isinstance(self.error, TextNotFoundError):
            return self.error.suggestions
        return []

    def __str__(self) -> str:
        """Get string representation of the result."""
        status = "✓" if self.success else "✗"
        return f"{status} {self.edit_type}: {self.message}"


@dataclass
class BatchResult:
    """Outcome of a batch of edits.

    Attributes:
        results: One EditResult per processed edit, in order
        requested: Number of edits in the batch (processing may stop early)
    """

    results: list[EditResult] = field(default_factory=list)
    requested: int = 0

    @property
    def succeeded(self) -> list[EditResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[EditResult]:
        return [r for r in self.results if not r.success]

    @property
    def not_found(self) -> list[EditResult]:
        """Failures caused by text that does not occur in its paragraph."""
        return [r for r in self.failed if isinstance(r.error, TextNotFoundError)]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def all_succeeded(self) -> bool:
        """Whether every requested edit was applied."""
        return self.failure_count == 0 and self.total == self.requested

    @property
    def partial(self) -> bool:
        """Whether some, but not all, edits were applied."""
        return self.success_count > 0 and not self.all_succeeded

    @property
    def summary(self) -> str:
        if self.requested == 0:
            return "No edits to apply"
        if self.all_succeeded:
            return f"All {self.requested} edits applied successfully"
        return f"{self.success_count}/{self.requested} edits applied, {self.failure_count} failed"

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    def __bool__(self) -> bool:
        return self.all_succeeded

    def __str__(self) -> str:
        lines = [self.summary]
        lines.extend(f"  {result}" for result in self.results)
        return "\n".join(lines)


@dataclass
class CommitResult:
    """What a commit wrote back into the package.

    Attributes:
        document_xml: The reassembled text of word/document.xml
        comments_xml: Serialized comments part, or None if no comment was added
        comments_part: Name of the comments part that was written
        relationships_changed: Whether a comments relationship was added
        content_types_changed: Whether a content type override was added
        paragraphs_replaced: Number of paragraph fragments substituted
    """

    document_xml: str
    comments_xml: bytes | None = None
    comments_part: str | None = None
    relationships_changed: bool = False
    content_types_changed: bool = False
    paragraphs_replaced: int = 0

    def __str__(self) -> str:
        parts = [f"{self.paragraphs_replaced} paragraph(s) rewritten"]
        if self.comments_xml is not None:
            parts.append(f"comments written to {self.comments_part}")
        return ", ".join(parts)
