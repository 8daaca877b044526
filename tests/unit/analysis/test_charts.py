"""Tests for chart data helpers."""

from __future__ import annotations

import pytest

from tablecast.analysis.analyzer import analyze_dataset
from tablecast.analysis.charts import (
    ChartPoint,
    ColumnSummary,
    format_column_name,
    get_categorical_columns,
    get_column_summary,
    get_numerical_columns,
    is_valid_pie_chart_column,
    prepare_pie_chart_data,
)

FUEL = [
    {"fuel": "LPG", "bill": 1000, "members": 4},
    {"fuel": "LPG", "bill": "₹1,500", "members": 3},
    {"fuel": "Electric", "bill": 800, "members": 2},
    {"fuel": None, "bill": "n/a", "members": 5},
]


# ---------------------------------------------------------------------------
# Column selection
# ---------------------------------------------------------------------------


def test_get_categorical_columns_bounds_unique_count():
    dataset = [{"one": "x", "few": f"v{i % 3}", "many": f"id{i}"} for i in range(30)]
    names = [c.name for c in get_categorical_columns(analyze_dataset(dataset))]
    assert names == ["few"]


def test_get_numerical_columns():
    names = [c.name for c in get_numerical_columns(analyze_dataset(FUEL))]
    assert names == ["members"]


# ---------------------------------------------------------------------------
# prepare_pie_chart_data
# ---------------------------------------------------------------------------


def test_pie_count_sorted_descending_with_unknown_label():
    points = prepare_pie_chart_data(FUEL, "fuel")
    assert points == [
        ChartPoint("LPG", 2.0),
        ChartPoint("Electric", 1.0),
        ChartPoint("Unknown", 1.0),
    ]


def test_pie_sum_parses_and_defaults_values():
    points = prepare_pie_chart_data(FUEL, "fuel", "bill", "sum")
    assert points[0] == ChartPoint("LPG", 1000.0)  # "₹1,500" has no numeric prefix
    assert ChartPoint("Unknown", 0.0) in points


def test_pie_average_min_max():
    data = [{"k": "a", "v": 2}, {"k": "a", "v": 4}, {"k": "b", "v": 10}]
    assert prepare_pie_chart_data(data, "k", "v", "average") == [
        ChartPoint("b", 10.0),
        ChartPoint("a", 3.0),
    ]
    assert prepare_pie_chart_data(data, "k", "v", "min")[1] == ChartPoint("a", 2.0)
    assert prepare_pie_chart_data(data, "k", "v", "max")[1] == ChartPoint("a", 4.0)


def test_pie_without_value_column_counts():
    points = prepare_pie_chart_data(FUEL, "fuel", None, "sum")
    assert points[0] == ChartPoint("LPG", 2.0)


def test_pie_zero_and_false_are_real_categories():
    data = [{"k": 0}, {"k": False}, {"k": None}]
    names = {p.name for p in prepare_pie_chart_data(data, "k")}
    assert names == {"0", "false", "Unknown"}


def test_pie_empty_dataset():
    assert prepare_pie_chart_data([], "fuel") == []
    assert prepare_pie_chart_data(None, "fuel") == []


def test_pie_ties_keep_first_seen_order():
    data = [{"k": "b"}, {"k": "a"}, {"k": "c"}]
    assert [p.name for p in prepare_pie_chart_data(data, "k")] == ["b", "a", "c"]


# ---------------------------------------------------------------------------
# Validation and summaries
# ---------------------------------------------------------------------------


def test_is_valid_pie_chart_column():
    assert is_valid_pie_chart_column(FUEL, "fuel")
    assert not is_valid_pie_chart_column([{"k": "only"}], "k")
    assert not is_valid_pie_chart_column([{"k": i} for i in range(16)], "k")
    assert is_valid_pie_chart_column([{"k": i} for i in range(15)], "k")
    assert not is_valid_pie_chart_column([], "k")
    assert not is_valid_pie_chart_column(FUEL, "")


def test_get_column_summary():
    summary = get_column_summary(FUEL, "fuel")
    assert summary == ColumnSummary(total=4, unique=2, null_count=1, most_common=("LPG", 2))


def test_get_column_summary_empty():
    assert get_column_summary([], "fuel") == ColumnSummary(total=0, unique=0, null_count=0)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("avgMonthlyBill", "Avg Monthly Bill"),
        ("Source_of_water", "Source of water"),
        ("num2Wheelers", "Num2 Wheelers"),
        ("city", "City"),
        ("", ""),
    ],
)
def test_format_column_name(raw, expected):
    assert format_column_name(raw) == expected
