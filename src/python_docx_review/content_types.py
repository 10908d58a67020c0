"""
[Content_Types].xml handling.

Every part in a package gets its content type either from an Override entry
naming the part or from the Default entry for its extension. A newly added
part such as word/comments.xml needs an Override, otherwise Word refuses to
open the file.
"""

import logging
import posixpath

from lxml import etree

from .constants import CONTENT_TYPES_NAMESPACE, CONTENT_TYPES_PART
from .errors import MalformedArchiveError
from .package import OOXMLPackage

logger = logging.getLogger(__name__)


def _tag(name: str) -> str:
    return f"{{{CONTENT_TYPES_NAMESPACE}}}{name}"


def _absolute(part_name: str) -> str:
    """Part names in [Content_Types].xml start with "/"."""
    return "/" + part_name.lstrip("/")


class ContentTypeManager:
    """Looks up content types and adds overrides for new parts.

    Part names are compared case-insensitively and may be given with or
    without the leading "/".

    Example:
        >>> types = ContentTypeManager(package)
        >>> if types.ensure_override("word/comments.xml", CONTENT_TYPE_COMMENTS):
        ...     types.save()
    """

    def __init__(self, package: OOXMLPackage) -> None:
        root = package.get_xml_part(CONTENT_TYPES_PART)
        if root is None:
            raise MalformedArchiveError(f"Package has no {CONTENT_TYPES_PART}")
        self._package = package
        self._root = root
        self._dirty = False

    @property
    def is_modified(self) -> bool:
        return self._dirty

    def override(self, part_name: str) -> str | None:
        """Content type of the Override entry for a part, or None."""
        wanted = _absolute(part_name).lower()
        for elem in self._root.iter(_tag("Override")):
            if elem.get("PartName", "").lower() == wanted:
                return elem.get("ContentType")
        return None

    def content_type(self, part_name: str) -> str | None:
        """Effective content type of a part: its Override, else its extension's Default."""
        found = self.override(part_name)
        if found is not None:
            return found

        extension = posixpath.splitext(part_name)[1].lstrip(".").lower()
        for elem in self._root.iter(_tag("Default")):
            if elem.get("Extension", "").lower() == extension:
                return elem.get("ContentType")
        return None

    def ensure_override(self, part_name: str, content_type: str) -> bool:
        """Add an Override entry for a part unless it already has one.

        Returns:
            True if an entry was added
        """
        if self.override(part_name) is not None:
            return False

        etree.SubElement(
            self._root,
            _tag("Override"),
            PartName=_absolute(part_name),
            ContentType=content_type,
        )
        self._dirty = True
        logger.debug(f"Added content type override for {_absolute(part_name)}")
        return True

    def save(self) -> None:
        """Write [Content_Types].xml back if an override was added."""
        if not self._dirty:
            return
        self._package.set_xml_part(CONTENT_TYPES_PART, self._root)
        self._dirty = False
