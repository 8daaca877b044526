"""Extraction oracle interface and response parsing.

An oracle turns a source document into raw row records. Two variants exist:

  extract_canonical  rows shaped like the household schema (loosely)
  extract_generic    rows with whatever columns the document has

The pipeline trusts only the contract "a JSON array of objects"; anything
else is an ExtractionFormatError.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from tablecast.cache.fingerprint import SourceFile
from tablecast.errors import ExtractionFormatError

RawRecord = dict[str, Any]

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


class ExtractionOracle(ABC):
    """Abstract extraction service."""

    @abstractmethod
    async def extract_canonical(self, file: SourceFile) -> list[RawRecord]:
        """Extract rows following the canonical household schema.

        Raises:
            ExtractionFormatError: If the response is not a JSON array of objects.
        """

    @abstractmethod
    async def extract_generic(self, file: SourceFile) -> list[RawRecord]:
        """Extract rows with free-form columns.

        Raises:
            ExtractionFormatError: If the response is not a JSON array of objects.
        """


def parse_records(text: str) -> list[RawRecord]:
    """Parse a model response into a list of row objects.

    A surrounding Markdown code fence is tolerated. An object wrapping a single
    array (``{"rows": [...]}``) is unwrapped.

    Raises:
        ExtractionFormatError: On an empty, non-JSON or non-array payload, or
            an array containing non-objects.
    """
    stripped = (text or "").strip()
    if not stripped:
        raise ExtractionFormatError("the response was empty")

    fenced = _FENCE_RE.match(stripped)
    if fenced:
        stripped = fenced.group(1).strip()

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise ExtractionFormatError(f"invalid JSON ({exc.msg} at position {exc.pos})") from exc
    except (ValueError, RecursionError) as exc:
        # Oversized integer literals and pathological nesting.
        raise ExtractionFormatError(f"unreadable JSON ({type(exc).__name__})") from exc

    if isinstance(data, dict):
        arrays = [v for v in data.values() if isinstance(v, list)]
        if len(arrays) == 1:
            data = arrays[0]

    if not isinstance(data, list):
        raise ExtractionFormatError(f"expected a JSON array, got {type(data).__name__}")

    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ExtractionFormatError(
                f"item {i} is {type(item).__name__}, expected an object"
            )
    return data
