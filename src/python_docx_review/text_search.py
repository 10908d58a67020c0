"""
Text search functionality for finding text in Word paragraphs.

This module handles the core algorithm for finding text that may be fragmented
across multiple <w:r> (run) elements in the OOXML structure, and for splitting
the runs at the match boundaries so the matched text can be wrapped in
revision or comment markup without touching the formatting around it.

Algorithm Note:
    Each paragraph gets an offset index: one RunSlot (run, start, end) per
    run, with start/end being offsets into the flattened text. A match in the
    flattened text is mapped back onto the slots it overlaps; the first and
    last of those runs are split at the exact character offsets.
"""

import logging
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass, field

from lxml import etree

from .constants import w, xml_attr
from .models.paragraph import DELETION_TAGS, INSERTION_TAGS, Paragraph, owning_paragraph, run_text

logger = logging.getLogger(__name__)

# Wrappers that may not contain a new revision of their own kind
REVISION_WRAPPERS = INSERTION_TAGS + DELETION_TAGS


@dataclass
class RunSlot:
    """One run of a paragraph with its position in the flattened text.

    Attributes:
        run: The w:r element
        start: Offset of the run's first character
        end: Offset just past the run's last character
    """

    run: etree._Element
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        """Whether the run contributes no characters (tabs, breaks, drawings)."""
        return self.start == self.end


@dataclass
class TextSpan:
    """A located occurrence of text in a paragraph.

    Attributes:
        paragraph: The paragraph containing the match
        start: Offset of the match in the paragraph's flattened text
        end: Offset just past the match (exclusive)
        slots: Offset index of the paragraph at the time of the search
    """

    paragraph: Paragraph
    start: int
    end: int
    slots: list[RunSlot] = field(repr=False)

    @property
    def text(self) -> str:
        """Get the matched text."""
        flattened = "".join(run_text(slot.run) for slot in self.slots)
        return flattened[self.start : self.end]

    @property
    def matched_slots(self) -> list[RunSlot]:
        """Slots of the runs that hold at least one matched character."""
        return [
            slot
            for slot in self.slots
            if not slot.is_empty and slot.start < self.end and slot.end > self.start
        ]


@dataclass
class IsolatedSpan:
    """A match whose text is made of whole runs.

    Attributes:
        paragraph: The paragraph containing the match
        runs: The runs holding exactly the matched text, in order
    """

    paragraph: Paragraph
    runs: list[etree._Element]

    @property
    def text(self) -> str:
        return "".join(run_text(run) for run in self.runs)

    @property
    def groups(self) -> list[list[etree._Element]]:
        """Split the runs into groups of adjacent siblings.

        A revision wrapper can only enclose siblings, so each group gets
        its own w:del when the match crosses a hyperlink or a run that does
        not contribute text.
        """
        groups: list[list[etree._Element]] = []
        for run in self.runs:
            if groups and groups[-1][-1].getnext() is run:
                groups[-1].append(run)
            else:
                groups.append([run])
        return groups

    def replace_group(
        self,
        group: list[etree._Element],
        build: Callable[[list[etree._Element]], list[etree._Element]],
    ) -> list[etree._Element]:
        """Detach a group of runs and put the elements built from them in its place.

        If `build` raises, the runs are put back where they were.

        Args:
            group: One entry of `groups`
            build: Receives the detached runs, returns the elements to insert

        Returns:
            The inserted elements
        """
        parent = group[0].getparent()
        index = parent.index(group[0])
        tail = group[-1].tail
        for run in group:
            parent.remove(run)
        group[-1].tail = None

        try:
            elements = build(group)
        except Exception:
            for offset, run in enumerate(group):
                if run.getparent() is not None:
                    run.getparent().remove(run)
                parent.insert(index + offset, run)
            group[-1].tail = tail
            raise

        for offset, elem in enumerate(elements):
            parent.insert(index + offset, elem)
        if elements:
            elements[-1].tail = tail
        return elements

    def insert_before(self, elements: list[etree._Element]) -> None:
        """Insert elements immediately before the first matched run."""
        first = self.runs[0]
        parent = first.getparent()
        index = parent.index(first)
        for offset, elem in enumerate(elements):
            parent.insert(index + offset, elem)

    def insert_after(self, elements: list[etree._Element]) -> None:
        """Insert elements immediately after the last matched run."""
        last = self.runs[-1]
        parent = last.getparent()
        index = parent.index(last) + 1
        tail = last.tail
        last.tail = None
        for offset, elem in enumerate(elements):
            parent.insert(index + offset, elem)
        if elements:
            elements[-1].tail = tail


class TextSearch:
    """Finds text in paragraphs and isolates it into whole runs.

    The core challenge is that text in Word documents can be split across
    multiple <w:r> (run) elements, making simple text search unreliable.
    Matching is exact, case-sensitive and uses the first occurrence only.
    """

    @staticmethod
    def build_index(paragraph: Paragraph) -> list[RunSlot]:
        """Build the offset index of a paragraph's live runs.

        Args:
            paragraph: The paragraph to index

        Returns:
            One RunSlot per run, in document order
        """
        slots = []
        position = 0
        for run in paragraph.runs():
            length = len(run_text(run))
            slots.append(RunSlot(run, position, position + length))
            position += length
        return slots

    def locate(self, paragraph: Paragraph, target: str) -> TextSpan | None:
        """Find the first occurrence of a literal text in a paragraph.

        Args:
            paragraph: The paragraph to search
            target: Text to find, verbatim (case and whitespace significant)

        Returns:
            TextSpan for the first match, or None if the text does not occur
        """
        if not target:
            return None

        slots = self.build_index(paragraph)
        flattened = "".join(run_text(slot.run) for slot in slots)
        position = flattened.find(target)
        if position == -1:
            return None

        return TextSpan(paragraph, position, position + len(target), slots)

    def isolate(
        self, span: TextSpan, split_start: bool = True, split_end: bool = True
    ) -> IsolatedSpan:
        """Split the boundary runs of a match so it consists of whole runs.

        The prefix and suffix pieces keep the original run properties, so
        the surrounding text keeps its formatting.

        Args:
            span: A TextSpan from locate()
            split_start: Whether to split the first run at the match start
            split_end: Whether to split the last run at the match end

        Returns:
            IsolatedSpan referencing the matched runs
        """
        matched = span.matched_slots
        runs = [slot.run for slot in matched]

        first, last = matched[0], matched[-1]
        if split_end and span.end < last.end:
            head, _ = split_run(last.run, span.end - last.start)
            if last is first:
                first = RunSlot(head, first.start, span.end)
            runs[-1] = head
        if split_start and span.start > first.start:
            _, tail = split_run(runs[0], span.start - first.start)
            runs[0] = tail

        return IsolatedSpan(span.paragraph, runs)


def split_run(run: etree._Element, offset: int) -> tuple[etree._Element, etree._Element]:
    """Split a run in two at a character offset of its text.

    Both halves are copies of the original run (attributes and w:rPr
    included) holding the content before and after the offset. Zero-width
    children (tabs, breaks) stay on the side where they appear; one sitting
    exactly at the offset goes to the second half.

    Args:
        run: The w:r element to split (must be attached to a parent)
        offset: Character offset, 0 < offset < len(run text)

    Returns:
        (first_half, second_half), both inserted where the run was
    """
    parent = run.getparent()
    index = parent.index(run)

    head = deepcopy(run)
    tail = deepcopy(run)
    head.tail = None
    _trim_run(head, 0, offset)
    _trim_run(tail, offset, None)

    parent.remove(run)
    parent.insert(index, head)
    parent.insert(index + 1, tail)
    return head, tail


def _trim_run(run: etree._Element, start: int, end: int | None) -> None:
    """Keep only the run content between two character offsets."""
    position = 0
    for child in list(run):
        if child.tag == w("rPr"):
            continue

        if child.tag == w("t"):
            text = child.text or ""
            length = len(text)
            lo = max(start, position) - position
            hi = length if end is None else min(end, position + length) - position
            position += length
            if hi <= lo:
                run.remove(child)
                continue
            kept = text[lo:hi]
            child.text = kept
            if kept[0].isspace() or kept[-1].isspace():
                child.set(xml_attr("space"), "preserve")
            continue

        # zero-width child
        if position < start or (end is not None and position >= end):
            run.remove(child)


def insertion_slot(
    anchor: etree._Element, after: bool, next_revision_id: Callable[[], int]
) -> tuple[etree._Element, int]:
    """Find where new revision markup may go next to an anchor element.

    A tracked insertion may not be nested in another w:ins (or in a w:del),
    not even through a hyperlink, smart tag, field or content control. When
    such a wrapper encloses the anchor, every element from the anchor up to
    and including the outermost wrapper is split at the anchor: the part on
    the far side moves into a copy (split revisions get a fresh id), and the
    slot is between the two halves of the outermost wrapper.

    Args:
        anchor: The run (or wrapper) to insert next to
        after: True to insert after the anchor, False to insert before it
        next_revision_id: Allocates ids for split-off wrapper halves

    Returns:
        (parent, index) to insert at
    """
    paragraph = owning_paragraph(anchor)
    outermost = None
    ancestor = anchor.getparent()
    while ancestor is not None and ancestor is not paragraph:
        if ancestor.tag in REVISION_WRAPPERS:
            outermost = ancestor
        ancestor = ancestor.getparent()

    node = anchor
    if outermost is not None:
        while node is not outermost:
            node = _split_parent(node, after, next_revision_id)
        logger.debug(f"Split {etree.QName(outermost).localname} revision around insertion point")

    parent = node.getparent()
    return parent, parent.index(node) + (1 if after else 0)


def _shell(elem: etree._Element) -> etree._Element:
    """Copy an element's tag, attributes and property children (w:*Pr)."""
    shell = etree.Element(elem.tag, attrib=dict(elem.attrib), nsmap=elem.nsmap)
    for child in elem:
        if isinstance(child.tag, str) and etree.QName(child).localname.endswith("Pr"):
            shell.append(deepcopy(child))
    return shell


def _split_parent(
    node: etree._Element, after: bool, next_revision_id: Callable[[], int]
) -> etree._Element:
    """Split node's parent in two at node and return the element to continue from.

    The siblings on the far side of node move into a copy of the parent
    placed next to it. A w:sdtContent is split together with its w:sdt.
    """
    parent = node.getparent()
    container = parent.getparent() if parent.tag == w("sdtContent") else parent

    siblings = list(node.itersiblings(preceding=not after))
    if not siblings:
        return container
    if not after:
        siblings.reverse()

    split = _shell(container)
    if container.tag in REVISION_WRAPPERS:
        split.set(w("id"), str(next_revision_id()))
    if container is not parent:
        # content control ids must stay unique
        for control_id in split.iterfind(f"{w('sdtPr')}/{w('id')}"):
            control_id.getparent().remove(control_id)
        target = etree.SubElement(split, w("sdtContent"))
    else:
        target = split

    for sibling in siblings:
        target.append(sibling)

    outer = container.getparent()
    position = outer.index(container)
    outer.insert(position + 1 if after else position, split)
    return container
