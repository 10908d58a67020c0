"""
Paragraph wrapper class for convenient access to paragraph elements.

A Paragraph keeps two versions of itself: the verbatim XML fragment it was
read from (used to find it again in the document body when the document is
reassembled) and a working lxml element that edits mutate in place.
"""

from lxml import etree

from python_docx_review.constants import MC_NAMESPACE, WORD_NAMESPACE, w

# Wrappers whose runs hold removed text
DELETION_TAGS = (w("del"), w("moveFrom"))

# Wrappers whose runs hold added text
INSERTION_TAGS = (w("ins"), w("moveTo"))

# Alternatives a consumer only reads when it cannot use mc:Choice
FALLBACK_TAGS = (f"{{{MC_NAMESPACE}}}Fallback",)


def owning_paragraph(element: etree._Element) -> etree._Element | None:
    """Return the nearest w:p ancestor of an element."""
    parent = element.getparent()
    while parent is not None:
        if parent.tag == w("p"):
            return parent
        parent = parent.getparent()
    return None


def has_ancestor(element: etree._Element, tags: tuple[str, ...], stop: etree._Element) -> bool:
    """Check whether an element sits inside one of the given wrappers below `stop`."""
    parent = element.getparent()
    while parent is not None and parent is not stop:
        if parent.tag in tags:
            return True
        parent = parent.getparent()
    return False


def run_text(run: etree._Element, include_deleted: bool = False) -> str:
    """Extract text from a run, avoiding XML structural whitespace.

    Only direct w:t children count (and w:delText when include_deleted is
    set); tabs, breaks, drawings and field characters are zero-width.

    Args:
        run: A w:r (run) Element
        include_deleted: Whether to include w:delText content

    Returns:
        Text content of the run
    """
    tags = (w("t"), w("delText")) if include_deleted else (w("t"),)
    return "".join(child.text or "" for child in run if child.tag in tags)


class Paragraph:
    """Wrapper around a w:p (paragraph) element of the document body.

    Attributes:
        index: Position among the body's paragraphs (0-based)
        original_xml: The paragraph fragment exactly as it appeared in
            word/document.xml
        original_text: Flattened text at parse time
    """

    def __init__(self, index: int, original_xml: str, element: etree._Element):
        """Initialize Paragraph wrapper.

        Args:
            index: Position among the body's paragraphs
            original_xml: Verbatim source fragment of the paragraph
            element: The parsed w:p element (working copy)
        """
        if element.tag != f"{{{WORD_NAMESPACE}}}p":
            raise ValueError(f"Expected w:p element, got {element.tag}")
        self.index = index
        self.original_xml = original_xml
        self._element = element
        self._modified = False
        self.original_text = self.text

    @property
    def element(self) -> etree._Element:
        """Get the underlying (working) XML element."""
        return self._element

    def runs(self, include_deleted: bool = False) -> list[etree._Element]:
        """Get the runs belonging to this paragraph, in document order.

        Runs of nested paragraphs (text boxes inside drawings) are skipped, and
        so are runs under mc:Fallback, which repeat the mc:Choice content.

        Args:
            include_deleted: Whether to include runs inside tracked deletions

        Returns:
            List of w:r elements
        """
        result = []
        for run in self._element.iter(w("r")):
            if owning_paragraph(run) is not self._element:
                continue
            if has_ancestor(run, FALLBACK_TAGS, self._element):
                continue
            if not include_deleted and has_ancestor(run, DELETION_TAGS, self._element):
                continue
            result.append(run)
        return result

    @property
    def text(self) -> str:
        """Flattened text of the paragraph as it currently reads.

        Concatenates the w:t text of the paragraph's runs in document order,
        skipping tracked deletions. This is the text edits are matched against.
        """
        return "".join(run_text(run) for run in self.runs())

    @property
    def raw_text(self) -> str:
        """Flattened text before any tracked change is accepted or rejected.

        Deleted text (w:delText) is included in document order.
        """
        return "".join(run_text(run, include_deleted=True) for run in self.runs(True))

    @property
    def rejected_text(self) -> str:
        """Flattened text with every tracked change rejected.

        Deleted text is kept and inserted text is dropped.
        """
        parts = []
        for run in self.runs(include_deleted=True):
            if has_ancestor(run, INSERTION_TAGS, self._element):
                continue
            parts.append(run_text(run, include_deleted=True))
        return "".join(parts)

    @property
    def is_modified(self) -> bool:
        """Whether an edit has changed this paragraph."""
        return self._modified

    def mark_modified(self) -> None:
        """Record that the working element no longer matches the original."""
        self._modified = True

    def restore(self, element: etree._Element) -> None:
        """Swap the working element for a saved copy of it.

        Used to undo an edit that failed half way through.
        """
        parent = self._element.getparent()
        if parent is not None:
            parent.replace(self._element, element)
        self._element = element

    def to_xml(self) -> str:
        """Serialize the paragraph as a fragment for the document body.

        Unmodified paragraphs return their verbatim original fragment. Modified
        ones are serialized through their wrapper root so no namespace
        declarations are repeated on the w:p element.
        """
        if not self._modified:
            return self.original_xml

        wrapper = self._element.getparent()
        if wrapper is None:
            return etree.tostring(self._element, encoding="unicode")

        from python_docx_review.body import start_tag_end

        serialized = etree.tostring(wrapper, encoding="unicode")
        start = start_tag_end(serialized)
        end = serialized.rindex("</")
        return serialized[start:end]

    def __repr__(self) -> str:
        preview = self.text[:40]
        return f"<Paragraph {self.index}: {preview!r}>"
