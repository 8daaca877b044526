"""Tests for the offline spreadsheet oracle."""

from __future__ import annotations

import asyncio
import io

import openpyxl
import pytest

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import ExtractionFormatError, UnsupportedFileError
from tablecast.extract.spreadsheet import LocalSpreadsheetOracle
from tablecast.normalize.rows import normalize_rows

SURVEY_HEADERS = [
    "Unit Name",
    "Name",
    "Number of family members",
    "Avg. Monthly Bill",
    "Do you have solar panels installed?",
    "Source of water",
]


def _xlsx(rows: list[list], name: str = "survey.xlsx") -> SourceFile:
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    content = buf.getvalue()
    return SourceFile(name=name, size=len(content), last_modified=0, content=content)


def test_extract_canonical_survey_workbook():
    f = _xlsx([SURVEY_HEADERS, ["Green Unit", "Asha", 4, "₹1,200", "No", "Borewell"]])
    raw = asyncio.run(LocalSpreadsheetOracle().extract_canonical(f))
    assert raw == [dict(zip(SURVEY_HEADERS, ["Green Unit", "Asha", 4, "₹1,200", "No", "Borewell"]))]

    (row,) = normalize_rows(raw)
    assert row["unitName"] == "Green Unit"
    assert row["familyMembers"] == 4
    assert row["avgMonthlyBill"] == 1200.0
    assert row["hasSolarPanels"] is False
    assert row["waterSource"] == "Borewell"


def test_extract_canonical_rejects_unmapped_headers():
    f = _xlsx([["city", "revenue"], ["Pune", 10]])
    with pytest.raises(ExtractionFormatError, match="0 of 2 columns"):
        asyncio.run(LocalSpreadsheetOracle().extract_canonical(f))


def test_extract_canonical_threshold_is_configurable():
    f = _xlsx([["name", "city"], ["Asha", "Pune"]])
    rows = asyncio.run(LocalSpreadsheetOracle(min_mapped_headers=1).extract_canonical(f))
    assert rows == [{"name": "Asha", "city": "Pune"}]


def test_extract_generic_keeps_headers_and_pads_short_rows():
    f = _xlsx([["city", "revenue", "notes"], ["Pune", 10], ["Goa", 20, "beach"]])
    rows = asyncio.run(LocalSpreadsheetOracle().extract_generic(f))
    assert rows == [
        {"city": "Pune", "revenue": 10, "notes": None},
        {"city": "Goa", "revenue": 20, "notes": "beach"},
    ]


def test_extract_generic_blank_and_duplicate_headers():
    f = _xlsx([["amount", None, "amount"], [1, 2, 3]])
    (row,) = asyncio.run(LocalSpreadsheetOracle().extract_generic(f))
    assert row == {"amount": 1, "column2": 2, "amount (3)": 3}


def test_extract_generic_csv():
    content = b"city,revenue\nPune,10\nGoa,20\n"
    f = SourceFile(name="sales.csv", size=len(content), last_modified=0, content=content)
    rows = asyncio.run(LocalSpreadsheetOracle().extract_generic(f))
    assert rows == [{"city": "Pune", "revenue": "10"}, {"city": "Goa", "revenue": "20"}]


def test_extract_empty_workbook():
    with pytest.raises(ExtractionFormatError, match="contains no rows"):
        asyncio.run(LocalSpreadsheetOracle().extract_generic(_xlsx([])))


def test_extract_pdf_is_unsupported_offline():
    f = SourceFile(name="survey.pdf", size=4, last_modified=0, content=b"%PDF")
    with pytest.raises(UnsupportedFileError):
        asyncio.run(LocalSpreadsheetOracle().extract_generic(f))
