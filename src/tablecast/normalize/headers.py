"""Header normalization — arbitrary column spellings → canonical field names."""

from __future__ import annotations

import re
from typing import Any, Mapping

from tablecast.schema.household import HEADER_ALIASES

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_]+")


def normalize_header(raw: Any) -> str:
    """Collapse *raw* to lowercase alphanumerics: "Avg. Monthly Bill" → "avgmonthlybill"."""
    return _NON_ALNUM_RE.sub("", str(raw)).lower()


def map_header(
    normalized_key: str, aliases: Mapping[str, str] = HEADER_ALIASES
) -> str:
    """Return the canonical field for *normalized_key*, or the key unchanged."""
    return aliases.get(normalized_key, normalized_key)


def clean_key(raw: Any) -> str:
    """Make *raw* identifier-safe while keeping it recognisable.

    "Source of water?" → "Source_of_water"; "2021 total" → "_2021_total".
    """
    key = _NON_WORD_RE.sub("_", str(raw).strip()).strip("_")
    if not key:
        return "column"
    if key[0].isdigit():
        key = f"_{key}"
    return key


def resolve_header(raw: Any, aliases: Mapping[str, str] = HEADER_ALIASES) -> str:
    """Canonical field name for *raw*, else its cleaned key."""
    normalized = normalize_header(raw)
    mapped = aliases.get(normalized)
    return mapped if mapped is not None else clean_key(raw)
