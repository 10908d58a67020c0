"""Tests for OOXMLPackage."""

import io
import zipfile

import pytest
from conftest import build_docx, part_names, read_part

from python_docx_review.errors import MalformedArchiveError
from python_docx_review.package import OOXMLPackage


class TestOpen:
    """Tests for loading packages."""

    def test_from_bytes_reads_all_parts(self, simple_docx: bytes) -> None:
        package = OOXMLPackage.from_bytes(simple_docx)
        assert package.part_names == part_names(simple_docx)
        assert package.get_part("word/styles.xml") == read_part(simple_docx, "word/styles.xml")

    def test_open_path(self, tmp_path, simple_docx: bytes) -> None:
        path = tmp_path / "doc.docx"
        path.write_bytes(simple_docx)
        package = OOXMLPackage.open(path)
        assert package.source_path == path
        assert package.part_exists("word/document.xml")

    def test_open_file_object(self, simple_docx: bytes) -> None:
        package = OOXMLPackage.open(io.BytesIO(simple_docx))
        assert package.part_exists("word/document.xml")

    def test_not_a_zip(self) -> None:
        with pytest.raises(MalformedArchiveError):
            OOXMLPackage.from_bytes(b"this is not a zip archive")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(MalformedArchiveError, match="not found"):
            OOXMLPackage.open(tmp_path / "missing.docx")

    def test_missing_part_is_none(self, simple_docx: bytes) -> None:
        package = OOXMLPackage.from_bytes(simple_docx)
        assert package.get_part("word/comments.xml") is None
        assert package.get_xml_part("word/comments.xml") is None


class TestSave:
    """Tests for writing packages back out."""

    def test_untouched_round_trip(self, simple_docx: bytes) -> None:
        """Every part comes back with identical bytes, in the same order."""
        package = OOXMLPackage.from_bytes(simple_docx)
        output = package.save_to_bytes()

        assert part_names(output) == part_names(simple_docx)
        for name in part_names(simple_docx):
            assert read_part(output, name) == read_part(simple_docx, name)

    def test_entry_metadata_preserved(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            info = zipfile.ZipInfo("word/document.xml", date_time=(2021, 5, 4, 3, 2, 0))
            info.compress_type = zipfile.ZIP_STORED
            zf.writestr(info, "<x/>")

        output = OOXMLPackage.from_bytes(buffer.getvalue()).save_to_bytes()

        with zipfile.ZipFile(io.BytesIO(output)) as zf:
            written = zf.getinfo("word/document.xml")
        assert written.date_time == (2021, 5, 4, 3, 2, 0)
        assert written.compress_type == zipfile.ZIP_STORED

    def test_set_part_tracks_modifications(self, simple_docx: bytes) -> None:
        package = OOXMLPackage.from_bytes(simple_docx)
        package.set_part("word/new.xml", b"<new/>")

        assert package.modified_parts == {"word/new.xml"}
        output = package.save_to_bytes()
        assert read_part(output, "word/new.xml") == b"<new/>"
        assert part_names(output)[-1] == "word/new.xml"

    def test_save_to_file(self, tmp_path) -> None:
        data = build_docx("<w:p/>")
        path = tmp_path / "out.docx"
        OOXMLPackage.from_bytes(data).save(path)
        assert zipfile.is_zipfile(path)
