"""Extraction oracles — document → raw row records."""

from tablecast.extract.base import ExtractionOracle, RawRecord, parse_records
from tablecast.extract.llm_oracle import LLMExtractionOracle
from tablecast.extract.spreadsheet import LocalSpreadsheetOracle

__all__ = [
    "ExtractionOracle",
    "LLMExtractionOracle",
    "LocalSpreadsheetOracle",
    "RawRecord",
    "parse_records",
]
