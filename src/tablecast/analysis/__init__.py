"""Dataset analysis and chart preparation."""

from tablecast.analysis.analyzer import (
    ColumnInfo,
    DatasetMetadata,
    IndicatorSchemaDetector,
    SchemaDetector,
    analyze_dataset,
    detect_column_type,
)
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

__all__ = [
    "ChartPoint",
    "ColumnInfo",
    "ColumnSummary",
    "DatasetMetadata",
    "IndicatorSchemaDetector",
    "SchemaDetector",
    "analyze_dataset",
    "detect_column_type",
    "format_column_name",
    "get_categorical_columns",
    "get_column_summary",
    "get_numerical_columns",
    "is_valid_pie_chart_column",
    "prepare_pie_chart_data",
]
