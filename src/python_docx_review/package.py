"""
OOXMLPackage class for managing Word document ZIP structure.

This module provides a clean abstraction for the OOXML package format,
separating ZIP handling from XML manipulation concerns. The archive is held
entirely in memory: parts that are never replaced are written back with the
exact bytes they were read with.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Any, BinaryIO

from lxml import etree

from .errors import MalformedArchiveError, PackagingError

logger = logging.getLogger(__name__)


class OOXMLPackage:
    """Manages the OOXML ZIP package structure.

    This class handles the low-level operations of:
    - Reading every part of a .docx archive into memory
    - Providing access to package parts as bytes or parsed XML
    - Repacking the parts in their original order, keeping per-entry
      compression and timestamps

    Example:
        >>> with OOXMLPackage.open("document.docx") as pkg:
        ...     doc_xml = pkg.get_part("word/document.xml")
        ...     pkg.set_part("word/document.xml", doc_xml)
        ...     pkg.save("copy.docx")
    """

    def __init__(
        self,
        parts: dict[str, bytes],
        infos: dict[str, zipfile.ZipInfo] | None = None,
        source_path: Path | None = None,
    ) -> None:
        """Initialize package with already-read parts.

        Use the class methods `open()` or `from_bytes()` instead of
        calling this constructor directly.

        Args:
            parts: Part name -> raw bytes, in archive order
            infos: Part name -> original ZipInfo (entry metadata)
            source_path: Original source file path, if any
        """
        self._parts = dict(parts)
        self._infos = dict(infos or {})
        self._source_path = source_path
        self._modified: set[str] = set()

    @classmethod
    def open(cls, source: str | Path | BinaryIO) -> "OOXMLPackage":
        """Open an OOXML package from a file path or file-like object.

        Args:
            source: Path to .docx file or file-like object containing it

        Returns:
            OOXMLPackage instance holding every part in memory

        Raises:
            MalformedArchiveError: If the source is not a valid ZIP file
        """
        source_path: Path | None = None

        if isinstance(source, str | Path):
            source_path = Path(source)
            if not source_path.exists():
                raise MalformedArchiveError(f"Document not found: {source_path}")
            zip_source: Path | BinaryIO = source_path
        else:
            zip_source = source

        if not zipfile.is_zipfile(zip_source):
            raise MalformedArchiveError("Source must be a valid .docx (ZIP) file")

        # Reset stream position if it was checked by is_zipfile
        if hasattr(zip_source, "seek"):
            zip_source.seek(0)

        parts: dict[str, bytes] = {}
        infos: dict[str, zipfile.ZipInfo] = {}
        try:
            with zipfile.ZipFile(zip_source, "r") as zip_ref:
                for info in zip_ref.infolist():
                    if info.is_dir():
                        continue
                    parts[info.filename] = zip_ref.read(info)
                    infos[info.filename] = info
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise MalformedArchiveError(f"Failed to read .docx file: {e}") from e

        logger.debug(f"Loaded package with {len(parts)} parts")
        return cls(parts, infos, source_path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "OOXMLPackage":
        """Open an OOXML package from bytes.

        Args:
            data: Bytes containing a .docx file

        Returns:
            OOXMLPackage instance
        """
        return cls.open(io.BytesIO(data))

    @property
    def source_path(self) -> Path | None:
        """Get the original source file path, if available."""
        return self._source_path

    @property
    def part_names(self) -> list[str]:
        """Names of all parts, in archive order."""
        return list(self._parts)

    @property
    def modified_parts(self) -> set[str]:
        """Names of parts that were written through set_part()."""
        return set(self._modified)

    def get_part(self, part_name: str) -> bytes | None:
        """Get the raw bytes of a package part.

        Args:
            part_name: Path within the package (e.g., "word/document.xml")

        Returns:
            The part bytes, or None if the part doesn't exist
        """
        return self._parts.get(part_name)

    def get_xml_part(self, part_name: str) -> etree._Element | None:
        """Get a package part as a parsed XML element.

        Args:
            part_name: Path within the package (e.g., "word/document.xml")

        Returns:
            Parsed XML root element, or None if part doesn't exist
        """
        data = self.get_part(part_name)
        if data is None:
            return None

        parser = etree.XMLParser(remove_blank_text=False)
        return etree.fromstring(data, parser)

    def set_part(self, part_name: str, data: bytes) -> None:
        """Write raw bytes to a package part, creating it if needed.

        Args:
            part_name: Path within the package
            data: New part content
        """
        self._parts[part_name] = data
        self._modified.add(part_name)
        logger.debug(f"Set part {part_name} ({len(data)} bytes)")

    def set_xml_part(self, part_name: str, element: etree._Element) -> None:
        """Serialize an XML element and write it to a package part.

        Args:
            part_name: Path within the package
            element: Root element to write
        """
        data = etree.tostring(
            element.getroottree(),
            encoding="UTF-8",
            xml_declaration=True,
            standalone=True,
        )
        self.set_part(part_name, data)

    def part_exists(self, part_name: str) -> bool:
        """Check if a package part exists."""
        return part_name in self._parts

    def save(self, output_path: str | Path) -> None:
        """Save the package to a .docx file.

        Args:
            output_path: Path to save the .docx file
        """
        data = self.save_to_bytes()
        Path(output_path).write_bytes(data)

    def save_to_bytes(self) -> bytes:
        """Save the package to bytes.

        Returns:
            The complete .docx file as bytes

        Raises:
            PackagingError: If the archive cannot be written
        """
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zip_ref:
                for name, data in self._parts.items():
                    zip_ref.writestr(self._entry_info(name), data)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
            raise PackagingError(f"Failed to write .docx archive: {e}") from e

        return buffer.getvalue()

    def _entry_info(self, name: str) -> zipfile.ZipInfo:
        """Build the ZipInfo for writing a part, reusing the original metadata."""
        original = self._infos.get(name)
        if original is None:
            info = zipfile.ZipInfo(name, date_time=(1980, 1, 1, 0, 0, 0))
            info.compress_type = zipfile.ZIP_DEFLATED
            return info

        info = zipfile.ZipInfo(name, date_time=original.date_time)
        info.compress_type = original.compress_type
        info.external_attr = original.external_attr
        info.create_system = original.create_system
        return info

    def close(self) -> None:
        """Release the in-memory parts."""
        self._parts.clear()
        self._infos.clear()

    def __enter__(self) -> "OOXMLPackage":
        """Context manager support."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager cleanup."""
        self.close()
