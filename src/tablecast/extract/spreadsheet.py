"""Offline spreadsheet oracle — reads workbook/CSV rows locally, no model call.

The first non-empty row of the first sheet is the header row; every following
row becomes a record keyed by those headers. The canonical variant requires
at least ``min_mapped_headers`` headers to resolve to household fields, and
reports a format error otherwise so the orchestrator falls back to the
generic variant.
"""

from __future__ import annotations

import logging
from typing import Any

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import ExtractionFormatError, UnsupportedFileError
from tablecast.extract.base import ExtractionOracle, RawRecord
from tablecast.extract.documents import Grid, document_kind, read_grids
from tablecast.normalize.headers import map_header, normalize_header
from tablecast.schema.household import FIELD_NAMES

logger = logging.getLogger(__name__)

MIN_MAPPED_HEADERS = 5


class LocalSpreadsheetOracle(ExtractionOracle):
    """Extract rows from XLSX/CSV files without an extraction model.

    Args:
        min_mapped_headers: Canonical extraction needs this many headers that
            map onto household fields.
    """

    def __init__(self, min_mapped_headers: int = MIN_MAPPED_HEADERS) -> None:
        self.min_mapped_headers = min_mapped_headers

    async def extract_canonical(self, file: SourceFile) -> list[RawRecord]:
        headers, body = self._table(file)
        canonical = set(FIELD_NAMES)
        mapped = [h for h in headers if map_header(normalize_header(h)) in canonical]
        if len(mapped) < self.min_mapped_headers:
            raise ExtractionFormatError(
                f"only {len(mapped)} of {len(headers)} columns map to household fields "
                f"(need {self.min_mapped_headers})"
            )
        return _records(headers, body)

    async def extract_generic(self, file: SourceFile) -> list[RawRecord]:
        headers, body = self._table(file)
        return _records(headers, body)

    def _table(self, file: SourceFile) -> tuple[list[str], Grid]:
        if document_kind(file) == "pdf":
            raise UnsupportedFileError(file.name, file.mime_type)
        grids = read_grids(file)
        grid = next((g for g in grids.values() if g), [])
        if not grid:
            raise ExtractionFormatError(f"'{file.name}' contains no rows")
        if len(grids) > 1:
            logger.info("Multiple sheets in %s; using the first non-empty one", file.name)
        headers = _headers(grid[0])
        return headers, grid[1:]


def _headers(row: list[Any]) -> list[str]:
    headers: list[str] = []
    for i, cell in enumerate(row):
        text = ("" if cell is None else str(cell).strip()) or f"column{i + 1}"
        if text in headers:
            text = f"{text} ({i + 1})"
        headers.append(text)
    return headers


def _records(headers: list[str], body: Grid) -> list[RawRecord]:
    records: list[RawRecord] = []
    for row in body:
        record: RawRecord = {}
        for i, header in enumerate(headers):
            record[header] = row[i] if i < len(row) else None
        records.append(record)
    return records
