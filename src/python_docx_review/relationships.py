"""
Part relationships (.rels) of an OOXML package.

Edits only ever need one relationship, from word/document.xml to the
comments part, so this covers looking a relationship up by type, resolving
its target to a part name and adding it when it is missing.
"""

import logging
import posixpath
from dataclasses import dataclass

from lxml import etree

from .constants import PACKAGE_RELATIONSHIPS_NAMESPACE
from .package import OOXMLPackage

logger = logging.getLogger(__name__)


def _tag(name: str) -> str:
    return f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}{name}"


@dataclass
class Relationship:
    """One entry of a .rels part.

    Attributes:
        rel_id: Relationship id, unique within the .rels part (e.g. "rId3")
        rel_type: Relationship type URI
        target: Target as written, usually relative to the source part
        external: Whether the target is outside the package (TargetMode="External")
    """

    rel_id: str
    rel_type: str
    target: str
    external: bool = False


class RelationshipManager:
    """Reads and extends the relationships of one source part.

    The .rels part is only written back by save() after ensure() added an
    entry. Lookups never change the package.

    Example:
        >>> rels = RelationshipManager(package, "word/document.xml")
        >>> rel_id, added = rels.ensure(REL_TYPE_COMMENTS, "comments.xml")
        >>> rels.save()
    """

    def __init__(self, package: OOXMLPackage, source_part: str) -> None:
        self._package = package
        self.source_part = source_part
        self.rels_part = self.rels_part_name(source_part)
        self._dirty = False

        root = package.get_xml_part(self.rels_part)
        if root is None:
            root = etree.Element(
                _tag("Relationships"), nsmap={None: PACKAGE_RELATIONSHIPS_NAMESPACE}
            )
        self._root = root

    @staticmethod
    def rels_part_name(part_name: str) -> str:
        """Name of the .rels part holding a part's relationships.

        "word/document.xml" -> "word/_rels/document.xml.rels"
        """
        directory, filename = posixpath.split(part_name)
        return posixpath.join(directory, "_rels", f"{filename}.rels")

    @property
    def relationships(self) -> list[Relationship]:
        return [
            Relationship(
                rel_id=elem.get("Id", ""),
                rel_type=elem.get("Type", ""),
                target=elem.get("Target", ""),
                external=elem.get("TargetMode") == "External",
            )
            for elem in self._root.iter(_tag("Relationship"))
        ]

    @property
    def is_modified(self) -> bool:
        return self._dirty

    def find(self, rel_type: str) -> Relationship | None:
        """First relationship of the given type, or None."""
        return next((rel for rel in self.relationships if rel.rel_type == rel_type), None)

    def target_part(self, rel_type: str) -> str | None:
        """Resolve the target of a relationship type to a part name.

        Relative targets are taken from the source part's directory, and
        targets starting with "/" from the package root. External targets
        resolve to None.
        """
        rel = self.find(rel_type)
        if rel is None or rel.external:
            return None
        if rel.target.startswith("/"):
            return rel.target[1:]
        directory = posixpath.dirname(self.source_part)
        return posixpath.normpath(posixpath.join(directory, rel.target))

    def ensure(self, rel_type: str, target: str) -> tuple[str, bool]:
        """Get the id of the relationship of a type, adding one if there is none.

        Args:
            rel_type: Relationship type URI
            target: Target to write if a relationship is added

        Returns:
            (relationship id, whether it was added)
        """
        existing = self.find(rel_type)
        if existing is not None:
            return existing.rel_id, False

        used = {rel.rel_id for rel in self.relationships}
        number = 1
        while f"rId{number}" in used:
            number += 1
        rel_id = f"rId{number}"

        etree.SubElement(
            self._root, _tag("Relationship"), Id=rel_id, Type=rel_type, Target=target
        )
        self._dirty = True
        logger.debug(f"Added relationship {rel_id} from {self.source_part} to {target}")
        return rel_id, True

    def save(self) -> None:
        """Write the .rels part back if a relationship was added."""
        if not self._dirty:
            return
        self._package.set_xml_part(self.rels_part, self._root)
        self._dirty = False
