"""Source documents → text and cell grids.

Dispatch by extension:
  .pdf                  → pypdf page text
  .xlsx .xlsm           → openpyxl cell values, one grid per sheet
  .csv .tsv .txt        → csv module (delimiter sniffed)
"""

from __future__ import annotations

import csv
import io
import zipfile
from typing import Any

import openpyxl
import pypdf
from pypdf.errors import PdfReadError

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import UnsupportedFileError

PDF_EXTS = {".pdf"}
WORKBOOK_EXTS = {".xlsx", ".xlsm"}
DELIMITED_EXTS = {".csv", ".tsv", ".txt"}
SUPPORTED_EXTS = PDF_EXTS | WORKBOOK_EXTS | DELIMITED_EXTS

Grid = list[list[Any]]


def document_kind(file: SourceFile) -> str:
    """Return 'pdf', 'workbook' or 'delimited'.

    Raises:
        UnsupportedFileError: For any other extension.
    """
    suffix = file.suffix
    if suffix in PDF_EXTS:
        return "pdf"
    if suffix in WORKBOOK_EXTS:
        return "workbook"
    if suffix in DELIMITED_EXTS:
        return "delimited"
    raise UnsupportedFileError(file.name, file.mime_type)


def read_grids(file: SourceFile) -> dict[str, Grid]:
    """Return {sheet name: rows of cell values} for a spreadsheet or CSV.

    Raises:
        UnsupportedFileError: If *file* is not a workbook or delimited text,
            or cannot be opened as one.
    """
    kind = document_kind(file)
    if kind == "workbook":
        return _read_workbook(file)
    if kind == "delimited":
        return {file.name: _read_delimited(file)}
    raise UnsupportedFileError(file.name, file.mime_type)


def render_text(file: SourceFile, max_chars: int | None = None) -> str:
    """Render *file* as plain text suitable for an extraction prompt.

    Spreadsheet cells are tab-separated, one line per row, each sheet under a
    ``== Sheet: <name> ==`` heading; empty sheets are skipped. PDF pages are
    separated by page markers.
    The result is truncated to *max_chars* when given.
    """
    if document_kind(file) == "pdf":
        text = _pdf_text(file)
    else:
        parts: list[str] = []
        for sheet, grid in read_grids(file).items():
            if not grid:
                continue
            lines = ["\t".join(_cell_text(c) for c in row) for row in grid]
            parts.append(f"== Sheet: {sheet} ==\n" + "\n".join(lines))
        text = "\n\n".join(parts)
    if max_chars is not None and len(text) > max_chars:
        text = text[:max_chars]
    return text


# ------------------------------------------------------------------
# Readers
# ------------------------------------------------------------------


def _pdf_text(file: SourceFile) -> str:
    """Extract page text; pages without text (scanned images) are skipped."""
    try:
        reader = pypdf.PdfReader(io.BytesIO(file.content))
        parts: list[str] = []
        for number, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                parts.append(f"==Start of page {number}==\n{page_text}\n==End of page {number}==")
    except (PdfReadError, ValueError, OSError) as exc:
        raise UnsupportedFileError(file.name, f"unreadable PDF: {exc}") from exc
    return "\n".join(parts)


def _read_workbook(file: SourceFile) -> dict[str, Grid]:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(file.content), read_only=True, data_only=True)
    except (zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
        raise UnsupportedFileError(file.name, f"unreadable workbook: {exc}") from exc
    try:
        grids: dict[str, Grid] = {}
        for ws in wb.worksheets:
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
            grids[ws.title] = _trim(rows)
        return grids
    finally:
        wb.close()


def _read_delimited(file: SourceFile) -> Grid:
    text = file.content.decode("utf-8-sig", errors="replace")
    if not text.strip():
        return []
    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",\t;|")
    except csv.Error:
        dialect = csv.excel_tab if file.suffix == ".tsv" else csv.excel
    return _trim([list(r) for r in csv.reader(io.StringIO(text), dialect)])


def _trim(rows: Grid) -> Grid:
    """Drop fully empty rows and trailing empty cells."""
    trimmed: Grid = []
    for row in rows:
        while row and (row[-1] is None or str(row[-1]).strip() == ""):
            row.pop()
        if row:
            trimmed.append(row)
    return trimmed


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).replace("\t", " ").replace("\n", " ")
