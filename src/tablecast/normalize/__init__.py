"""Normalization — header mapping, value coercion, row normalization."""

from tablecast.normalize.coerce import (
    Value,
    to_boolean,
    to_integer,
    to_number,
    to_text,
    to_value,
)
from tablecast.normalize.headers import clean_key, map_header, normalize_header, resolve_header
from tablecast.normalize.rows import clean_records, normalize_rows

__all__ = [
    "Value",
    "clean_key",
    "clean_records",
    "map_header",
    "normalize_header",
    "normalize_rows",
    "resolve_header",
    "to_boolean",
    "to_integer",
    "to_number",
    "to_text",
    "to_value",
]
