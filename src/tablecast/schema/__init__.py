"""Canonical target schema and header alias table."""

from tablecast.schema.household import (
    FIELDS,
    FIELD_NAMES,
    HEADER_ALIASES,
    FieldKind,
    FieldSpec,
)

__all__ = [
    "FIELDS",
    "FIELD_NAMES",
    "HEADER_ALIASES",
    "FieldKind",
    "FieldSpec",
]
