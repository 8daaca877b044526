"""Tests for document reading and prompt text rendering."""

from __future__ import annotations

import io

import openpyxl
import pypdf
import pytest

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import UnsupportedFileError
from tablecast.extract.documents import document_kind, read_grids, render_text


def _file(name: str, content: bytes) -> SourceFile:
    return SourceFile(name=name, size=len(content), last_modified=0, content=content)


def _xlsx(sheets: dict[str, list[list]]) -> bytes:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.mark.parametrize(
    "name,kind",
    [("a.pdf", "pdf"), ("a.XLSX", "workbook"), ("a.csv", "delimited"), ("a.tsv", "delimited")],
)
def test_document_kind(name, kind):
    assert document_kind(_file(name, b"")) == kind


def test_document_kind_unsupported():
    with pytest.raises(UnsupportedFileError, match="notes.docx"):
        document_kind(_file("notes.docx", b""))


def test_read_grids_csv_trims_empty_rows():
    content = b"unit,name,members\nA,Asha,4\n,,\nB,Ravi,3\n"
    grids = read_grids(_file("survey.csv", content))
    assert grids == {
        "survey.csv": [["unit", "name", "members"], ["A", "Asha", "4"], ["B", "Ravi", "3"]]
    }


def test_read_grids_csv_empty():
    assert read_grids(_file("empty.csv", b"  \n")) == {"empty.csv": []}


def test_read_grids_workbook_all_sheets():
    content = _xlsx({"Page 1": [["name", "bill"], ["Asha", 1200]], "Page 2": [["x"], [1]]})
    grids = read_grids(_file("survey.xlsx", content))
    assert list(grids) == ["Page 1", "Page 2"]
    assert grids["Page 1"] == [["name", "bill"], ["Asha", 1200]]


def test_read_grids_corrupt_workbook():
    with pytest.raises(UnsupportedFileError, match="unreadable workbook"):
        read_grids(_file("broken.xlsx", b"this is not a zip"))


def test_read_grids_rejects_pdf():
    with pytest.raises(UnsupportedFileError):
        read_grids(_file("a.pdf", b"%PDF-1.4"))


def test_render_text_workbook_sections():
    content = _xlsx({"Data": [["name", "bill"], ["Asha", 1200], [None, "multi\nline"]]})
    text = render_text(_file("survey.xlsx", content))
    assert text.splitlines() == ["== Sheet: Data ==", "name\tbill", "Asha\t1200", "\tmulti line"]


def test_render_text_truncates():
    text = render_text(_file("a.csv", b"abcdef,ghijkl\n1,2\n"), max_chars=10)
    assert len(text) == 10


def test_render_text_pdf_without_text_layer_is_empty():
    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    assert render_text(_file("scan.pdf", buf.getvalue())) == ""
