"""Chart data helpers built on DatasetMetadata."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from tablecast.analysis.analyzer import ColumnInfo, DatasetMetadata, distinct_key
from tablecast.normalize.coerce import parse_float_prefix, to_text

AggregationType = Literal["count", "sum", "average", "min", "max"]

PIE_MIN_UNIQUE = 2
PIE_MAX_UNIQUE = 20
PIE_READABLE_MAX = 15
UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class ChartPoint:
    name: str
    value: float


@dataclass(frozen=True)
class ColumnSummary:
    total: int
    unique: int
    null_count: int
    most_common: tuple[str, int] | None = None


def get_categorical_columns(metadata: DatasetMetadata) -> list[ColumnInfo]:
    """Categorical columns with 2–20 distinct values (legible as a pie chart)."""
    return [
        c
        for c in metadata.columns
        if c.is_categorical and PIE_MIN_UNIQUE <= c.unique_count <= PIE_MAX_UNIQUE
    ]


def get_numerical_columns(metadata: DatasetMetadata) -> list[ColumnInfo]:
    return [c for c in metadata.columns if c.is_numerical]


def _label(value: Any) -> str:
    return to_text(value, fallback=UNKNOWN_LABEL)


def _numeric(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        parsed = parse_float_prefix(value)
        return parsed if parsed is not None else 0.0
    return 0.0


def prepare_pie_chart_data(
    dataset: Sequence[Mapping[str, Any]] | None,
    column: str,
    aggregation_column: str | None = None,
    aggregation_type: AggregationType = "count",
) -> list[ChartPoint]:
    """Aggregate *dataset* by *column* into chart points.

    With ``aggregation_type="count"`` (or no *aggregation_column*) each point
    is the number of rows per category. Otherwise the numeric values of
    *aggregation_column* are summed, averaged, or reduced to min/max per
    category. Missing categories are labelled "Unknown"; unparsable numbers
    count as 0.

    Points are sorted by value, descending; ties keep first-seen order.
    """
    if not dataset:
        return []

    if aggregation_type == "count" or not aggregation_column:
        counts: dict[str, int] = {}
        for row in dataset:
            label = _label(row.get(column))
            counts[label] = counts.get(label, 0) + 1
        points = [ChartPoint(name, float(n)) for name, n in counts.items()]
        return sorted(points, key=lambda p: p.value, reverse=True)

    groups: dict[str, list[float]] = {}
    for row in dataset:
        groups.setdefault(_label(row.get(column)), []).append(
            _numeric(row.get(aggregation_column))
        )

    points = [ChartPoint(name, _aggregate(values, aggregation_type)) for name, values in groups.items()]
    return sorted(points, key=lambda p: p.value, reverse=True)


def _aggregate(values: list[float], aggregation_type: str) -> float:
    if aggregation_type == "sum":
        return sum(values)
    if aggregation_type == "average":
        return sum(values) / len(values)
    if aggregation_type == "min":
        return min(values)
    if aggregation_type == "max":
        return max(values)
    return float(len(values))


def is_valid_pie_chart_column(dataset: Sequence[Mapping[str, Any]] | None, column: str) -> bool:
    """True if *column* has 2–15 distinct non-null values in *dataset*."""
    if not dataset or not column:
        return False
    distinct = {distinct_key(row.get(column)) for row in dataset if row.get(column) is not None}
    return PIE_MIN_UNIQUE <= len(distinct) <= PIE_READABLE_MAX


def get_column_summary(dataset: Sequence[Mapping[str, Any]] | None, column: str) -> ColumnSummary:
    """Row total, distinct count, empty count and most common value of *column*."""
    if not dataset:
        return ColumnSummary(total=0, unique=0, null_count=0)

    values = [row.get(column) for row in dataset]
    present = [v for v in values if not (v is None or v == "")]
    counts = Counter(to_text(v) for v in present)
    most_common = counts.most_common(1)

    return ColumnSummary(
        total=len(values),
        unique=len(counts),
        null_count=len(values) - len(present),
        most_common=most_common[0] if most_common else None,
    )


_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def format_column_name(column_name: str) -> str:
    """Display form of a column key: "avgMonthlyBill" → "Avg Monthly Bill"."""
    spaced = _CAMEL_RE.sub(" ", column_name)
    spaced = re.sub(r"[-_]+", " ", spaced).strip()
    spaced = re.sub(r"\s+", " ", spaced)
    return spaced[:1].upper() + spaced[1:]
