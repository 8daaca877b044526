"""Row normalization — raw oracle rows → canonical or cleaned generic records.

``normalize_rows`` is strict about the container (it must be a list) and
lenient about everything inside it: every row comes out with every canonical
field present and correctly typed, row for row.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from tablecast.errors import InvalidInputError
from tablecast.normalize.coerce import (
    Value,
    is_empty,
    to_boolean,
    to_integer,
    to_number,
    to_text,
    to_value,
)
from tablecast.normalize.headers import clean_key, resolve_header
from tablecast.schema.household import FIELDS, FieldKind

CanonicalRecord = dict[str, Value]
GenericRecord = dict[str, Value]

_COERCERS: dict[FieldKind, Callable[[Any], Value]] = {
    "identity": lambda v: to_text(v, fallback=""),
    "text": lambda v: to_text(v, fallback="N/A"),
    "integer": to_integer,
    "number": to_number,
    "boolean": to_boolean,
}


def normalize_rows(raw_rows: Any) -> list[CanonicalRecord]:
    """Normalize *raw_rows* into canonical household records.

    Args:
        raw_rows: List of row mappings with arbitrary header spellings.

    Returns:
        One record per input row. Canonical fields come first, in schema
        order; unmapped columns follow under their cleaned key.

    Raises:
        InvalidInputError: If *raw_rows* is not a list.
    """
    if not isinstance(raw_rows, list):
        raise InvalidInputError(raw_rows)
    return [_normalize_row(row) for row in raw_rows]


def _normalize_row(row: Any) -> CanonicalRecord:
    resolved: dict[str, Any] = {}
    if isinstance(row, Mapping):
        for header, value in row.items():
            key = resolve_header(header)
            # First non-empty value wins when several columns share a field.
            if key not in resolved or is_empty(resolved[key]):
                resolved[key] = value

    record: CanonicalRecord = {
        spec.name: _COERCERS[spec.kind](resolved.pop(spec.name, None)) for spec in FIELDS
    }
    for key, value in resolved.items():
        record[key] = to_value(value)
    return record


def clean_records(raw_rows: Any) -> list[GenericRecord]:
    """Clean free-form rows: identifier-safe keys, sanitized values.

    Key collisions after cleaning get numeric suffixes (``amount``,
    ``amount_2``). Rows without a single non-empty value are dropped.

    Raises:
        InvalidInputError: If *raw_rows* is not a list.
    """
    if not isinstance(raw_rows, list):
        raise InvalidInputError(raw_rows)

    cleaned: list[GenericRecord] = []
    for row in raw_rows:
        if not isinstance(row, Mapping):
            continue
        record: GenericRecord = {}
        for header, value in row.items():
            key = _unique_key(clean_key(header), record)
            record[key] = to_value(value)
        if any(not is_empty(v) for v in record.values()):
            cleaned.append(record)
    return cleaned


def _unique_key(key: str, taken: Mapping[str, Any]) -> str:
    if key not in taken:
        return key
    n = 2
    while f"{key}_{n}" in taken:
        n += 1
    return f"{key}_{n}"
