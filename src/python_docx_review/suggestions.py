"""
Hints for edits whose text cannot be found.

Review models usually copy text out of a rendering of the document, so the
misses are mostly typographic: straight quotes where the document has curly
ones, doubled or invisible spaces, or text that moved to another paragraph.
The hints end up on TextNotFoundError and on the failed EditResult.
"""

from rapidfuzz import fuzz

from .constants import CONTEXT_CHARS_DEFAULT
from .models.paragraph import Paragraph

# (straight form, curly forms, name)
_QUOTE_STYLES = (
    ('"', "\u201c\u201d", "double quotes"),
    ("'", "\u2018\u2019", "apostrophes"),
)

# Characters a search text may carry that paragraph text rarely has
_INVISIBLE_CHARACTERS = (
    ("\u00a0", "a non-breaking space (\\u00a0)"),
    ("\u200b", "a zero-width space (\\u200b)"),
    ("\t", "a tab; tabs are not part of paragraph text"),
    ("\n", "a line break"),
    ("\r", "a carriage return"),
)


class SuggestionGenerator:
    """Builds hints explaining why a search text did not match a paragraph."""

    @staticmethod
    def generate_suggestions(
        text: str, paragraph: Paragraph, paragraphs: list[Paragraph] | None = None
    ) -> list[str]:
        """Explain a miss of `text` in `paragraph`.

        Args:
            text: The text that was searched for
            paragraph: The paragraph that was searched
            paragraphs: All paragraphs of the document, to look for the text
                elsewhere (optional)

        Returns:
            Hints, most specific first; generic advice if nothing specific applies
        """
        para_text = paragraph.text
        hints = SuggestionGenerator.quote_mismatches(text, para_text)
        hints.extend(SuggestionGenerator.invisible_characters(text, para_text))

        if "  " in text and "  " not in para_text:
            hints.append("Search text contains double spaces; the paragraph uses single spaces")

        if text != text.strip():
            hints.append(f'Search text has leading/trailing whitespace. Try: "{text.strip()}"')

        if text.lower() in para_text.lower():
            hints.append("Text found with case-insensitive search. Check capitalization")

        if paragraphs:
            elsewhere = [p.index for p in paragraphs if p is not paragraph and text in p.text]
            if elsewhere:
                hints.append(f"Text occurs in paragraph(s) {', '.join(map(str, elsewhere[:5]))}")

        if text in paragraph.rejected_text:
            hints.append("Text is already part of a tracked deletion")

        closest = SuggestionGenerator.find_similar_text(text, para_text, max_suggestions=1)
        if closest:
            hints.append(f'Closest text in paragraph: "{closest[0]}"')

        if not hints:
            hints = [
                "Check for typos in the search text",
                "Try a shorter phrase from the paragraph",
                f"Paragraph text starts with: {para_text[:CONTEXT_CHARS_DEFAULT]!r}",
            ]
        return hints

    @staticmethod
    def quote_mismatches(text: str, para_text: str) -> list[str]:
        """Report quote styles that differ between search text and paragraph."""
        hints = []
        for straight, curly, name in _QUOTE_STYLES:
            text_curly = any(c in text for c in curly)
            para_curly = any(c in para_text for c in curly)
            if straight in text and para_curly:
                hints.append(f"Paragraph uses curly {name} ({curly}); use them in the search text")
            elif text_curly and not para_curly and straight in para_text:
                hints.append(f"Paragraph uses straight {name} ({straight}); use them in the search text")
        return hints

    @staticmethod
    def invisible_characters(text: str, para_text: str = "") -> list[str]:
        """Report hard-to-see characters in the search text that the paragraph lacks."""
        return [
            f"Search text contains {name}"
            for char, name in _INVISIBLE_CHARACTERS
            if char in text and char not in para_text
        ]

    @staticmethod
    def find_similar_text(
        search_text: str,
        paragraph_text: str,
        max_suggestions: int = 3,
        min_similarity: float = 0.6,
    ) -> list[str]:
        """Find word windows of a paragraph that resemble the search text.

        Windows have one word fewer to one word more than the search text and
        are scored case-insensitively with rapidfuzz.

        Example:
            >>> SuggestionGenerator.find_similar_text(
            ...     "producton products", "Third paragraph with production products."
            ... )
            ['production products.']
        """
        if not search_text.strip() or not paragraph_text.strip():
            return []

        words = paragraph_text.split()
        width = max(1, len(search_text.split()))
        needle = search_text.lower()

        scored: dict[str, tuple[float, str]] = {}
        for size in range(max(1, width - 1), width + 2):
            for start in range(len(words) - size + 1):
                window = " ".join(words[start : start + size])
                key = window.lower()
                if key not in scored:
                    scored[key] = (fuzz.ratio(needle, key) / 100.0, window)

        ranked = sorted(scored.values(), key=lambda item: item[0], reverse=True)
        return [window for score, window in ranked if score >= min_similarity][:max_suggestions]
