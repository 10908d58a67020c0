"""
Centralized constants for OOXML namespaces and other magic values.

Import from here to keep namespace URLs, part names and relationship types
consistent across the package.
"""

# =============================================================================
# Word Processing Namespaces
# =============================================================================

# Main WordprocessingML namespace (Word 2007+)
WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"


# =============================================================================
# Package and Relationship Namespaces
# =============================================================================

# Open Packaging Convention namespaces
PACKAGE_RELATIONSHIPS_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/content-types"

# XML namespace
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

# Markup compatibility (mc:AlternateContent)
MC_NAMESPACE = "http://schemas.openxmlformats.org/markup-compatibility/2006"


# =============================================================================
# Relationship and Content Types
# =============================================================================

REL_TYPE_COMMENTS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/comments"

CONTENT_TYPE_COMMENTS = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml"
)


# =============================================================================
# Part Names
# =============================================================================

DOCUMENT_PART = "word/document.xml"
COMMENTS_PART = "word/comments.xml"
CONTENT_TYPES_PART = "[Content_Types].xml"


# =============================================================================
# Namespace Maps
# =============================================================================

NSMAP = {"w": WORD_NAMESPACE}


# =============================================================================
# Revision Defaults
# =============================================================================

# Author written on tracked changes and comments when none is configured
DEFAULT_AUTHOR = "Reviewer"

# w:date format (ISO 8601, UTC, second precision)
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Elements whose w:id shares the revision id space
REVISION_TAGS = (
    "ins",
    "del",
    "moveFrom",
    "moveTo",
    "moveFromRangeStart",
    "moveToRangeStart",
    "pPrChange",
    "rPrChange",
    "sectPrChange",
    "tblPrChange",
    "trPrChange",
    "tcPrChange",
    "numberingChange",
    "customXmlInsRangeStart",
    "customXmlDelRangeStart",
)

# Text search context - characters to show around a near match
CONTEXT_CHARS_DEFAULT = 40


# =============================================================================
# Helper Functions
# =============================================================================


def w(tag: str) -> str:
    """Create a fully qualified Word namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "p", "r", "t")

    Returns:
        Fully qualified tag (e.g., "{http://...wordprocessingml/2006/main}p")

    Example:
        >>> w("p")
        '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    return f"{{{WORD_NAMESPACE}}}{tag}"


def xml_attr(name: str) -> str:
    """Create a fully qualified xml: attribute name (e.g., xml:space)."""
    return f"{{{XML_NAMESPACE}}}{name}"
