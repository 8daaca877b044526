"""Dataset analysis — column types, categorical/numerical roles, chart suggestions.

All functions are pure: they read a dataset and return fresh, frozen metadata.
Type inference is a majority vote (default 80 %) so a minority of malformed
cells does not flip a whole column to ``string``.
"""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

from dateutil import parser as date_parser

from tablecast.normalize.coerce import parse_float_prefix

ColumnType = Literal["string", "number", "boolean", "date", "unknown"]
ChartType = Literal["pie", "bar", "line", "scatter"]
DataType = Literal["household", "generic"]

TYPE_THRESHOLD = 0.8
CATEGORICAL_MAX_UNIQUE = 20
UNIQUE_SAMPLE_SIZE = 50
HOUSEHOLD_INDICATORS: tuple[str, ...] = (
    "unitname",
    "familymembers",
    "housetype",
    "monthlybill",
    "energy",
)

_BOOLEAN_TOKENS: frozenset[str] = frozenset({"true", "false", "yes", "no", "1", "0"})


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnInfo:
    """Inferred facts about a single column.

    Attributes:
        name: Column key as it appears in the records.
        type: Majority-vote inferred type.
        unique_values: First distinct values in row order (bounded sample).
        unique_count: Number of distinct non-empty values in the whole column.
        has_null_values: True if any row lacks a value (absent, None or "").
        is_numerical: True iff ``type == "number"``.
        is_categorical: True for string/boolean columns and low-cardinality numbers.
    """

    name: str
    type: ColumnType
    unique_values: tuple[Any, ...]
    unique_count: int
    has_null_values: bool
    is_numerical: bool
    is_categorical: bool


@dataclass(frozen=True)
class DatasetMetadata:
    """Derived description of a dataset. Recomputed, never mutated."""

    columns: tuple[ColumnInfo, ...]
    row_count: int
    data_type: DataType
    suggested_chart_types: tuple[ChartType, ...]

    def column(self, name: str) -> ColumnInfo | None:
        """Return the ColumnInfo called *name*, or None."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]


# ---------------------------------------------------------------------------
# Schema detection strategy
# ---------------------------------------------------------------------------


class SchemaDetector(ABC):
    """Decides whether a dataset looks like the canonical household schema."""

    @abstractmethod
    def matches(self, column_names: Sequence[str]) -> bool:
        """Return True if *column_names* suggest the canonical schema."""


class IndicatorSchemaDetector(SchemaDetector):
    """Case-insensitive substring match against a set of indicator tokens.

    Best-effort: columns that use wholly different phrasing are classified
    as generic.
    """

    def __init__(self, indicators: Iterable[str] = HOUSEHOLD_INDICATORS) -> None:
        self.indicators = tuple(i.lower() for i in indicators if i)

    def matches(self, column_names: Sequence[str]) -> bool:
        lowered = [str(c).lower() for c in column_names]
        return any(ind in col for ind in self.indicators for col in lowered)


# ---------------------------------------------------------------------------
# Column type inference
# ---------------------------------------------------------------------------


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _is_boolean_like(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    return isinstance(value, str) and value.strip().lower() in _BOOLEAN_TOKENS


def _is_number_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return isinstance(value, str) and parse_float_prefix(value) is not None


def _is_date_like(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text:
        return False
    try:
        datetime.fromisoformat(text.replace("Z", "+00:00"))
        return True
    except ValueError:
        pass
    # Bare words ("May", "Sun") are not dates on their own.
    if not any(ch.isdigit() for ch in text):
        return False
    try:
        date_parser.parse(text)
    except (ValueError, OverflowError):
        return False
    return True


def detect_column_type(values: Iterable[Any], threshold: float = TYPE_THRESHOLD) -> ColumnType:
    """Infer a column type from its *values* by majority vote.

    Empty values (None, "") are ignored. A type wins when at least
    *threshold* of the remaining values match it; checks run in the order
    boolean → number → date, with string as the fallback.
    """
    present = [v for v in values if not _is_missing(v)]
    if not present:
        return "unknown"

    total = len(present)
    if sum(1 for v in present if _is_boolean_like(v)) / total >= threshold:
        return "boolean"
    if sum(1 for v in present if _is_number_like(v)) / total >= threshold:
        return "number"
    if sum(1 for v in present if _is_date_like(v)) / total >= threshold:
        return "date"
    return "string"


# ---------------------------------------------------------------------------
# Dataset analysis
# ---------------------------------------------------------------------------


def distinct_key(value: Any) -> Any:
    """Hashable stand-in for *value* (containers become sorted JSON)."""
    if isinstance(value, (dict, list, tuple, set)):
        try:
            return json.dumps(value, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return repr(value)
    return value


def column_names(dataset: Sequence[Mapping[str, Any]]) -> list[str]:
    """Union of keys across *dataset*, in first-seen order."""
    seen: dict[str, None] = {}
    for row in dataset:
        if isinstance(row, Mapping):
            for key in row:
                seen.setdefault(str(key), None)
    return list(seen)


def _analyze_column(
    name: str,
    dataset: Sequence[Mapping[str, Any]],
    *,
    threshold: float,
    categorical_max_unique: int,
    sample_size: int,
) -> ColumnInfo:
    values = [row.get(name) if isinstance(row, Mapping) else None for row in dataset]
    col_type = detect_column_type(values, threshold)

    distinct: dict[Any, Any] = {}
    for v in values:
        if not _is_missing(v):
            distinct.setdefault(distinct_key(v), v)
    unique_count = len(distinct)

    return ColumnInfo(
        name=name,
        type=col_type,
        unique_values=tuple(list(distinct.values())[:sample_size]),
        unique_count=unique_count,
        has_null_values=any(_is_missing(v) for v in values),
        is_numerical=col_type == "number",
        is_categorical=col_type in ("string", "boolean")
        or (col_type == "number" and unique_count <= categorical_max_unique),
    )


def suggest_chart_types(columns: Sequence[ColumnInfo]) -> tuple[ChartType, ...]:
    """Chart types suited to *columns* — independent conditions, fixed order."""
    categorical = sum(1 for c in columns if c.is_categorical)
    numerical = sum(1 for c in columns if c.is_numerical)

    suggested: list[ChartType] = []
    if categorical >= 1:
        suggested.extend(["pie", "bar"])
    if numerical >= 2:
        suggested.append("scatter")
    if numerical >= 1:
        suggested.append("line")
    return tuple(suggested)


def analyze_dataset(
    dataset: Sequence[Mapping[str, Any]] | None,
    *,
    detector: SchemaDetector | None = None,
    threshold: float = TYPE_THRESHOLD,
    categorical_max_unique: int = CATEGORICAL_MAX_UNIQUE,
    sample_size: int = UNIQUE_SAMPLE_SIZE,
) -> DatasetMetadata:
    """Derive fresh DatasetMetadata for *dataset*.

    Args:
        dataset: Records with arbitrary (possibly sparse) keys.
        detector: Schema classification strategy; defaults to
            IndicatorSchemaDetector with the household indicators.
        threshold: Majority-vote fraction for type inference.
        categorical_max_unique: Max distinct values for a numeric column to
            also count as categorical.
        sample_size: Max entries kept in ``ColumnInfo.unique_values``.

    Returns:
        DatasetMetadata; an empty dataset yields no columns, ``generic``,
        and no chart suggestions.
    """
    if not dataset:
        return DatasetMetadata(columns=(), row_count=0, data_type="generic", suggested_chart_types=())

    names = column_names(dataset)
    columns = tuple(
        _analyze_column(
            name,
            dataset,
            threshold=threshold,
            categorical_max_unique=categorical_max_unique,
            sample_size=sample_size,
        )
        for name in names
    )
    detector = detector or IndicatorSchemaDetector()

    return DatasetMetadata(
        columns=columns,
        row_count=len(dataset),
        data_type="household" if detector.matches(names) else "generic",
        suggested_chart_types=suggest_chart_types(columns),
    )
