"""tablecast process CLI command.

Turns one document into a normalized dataset and prints its metadata, a data
preview and optionally pie-chart data.

Usage:
  tablecast process survey.pdf
  tablecast process survey.xlsx --offline --pie cookingFuel
  tablecast process survey.pdf --pie houseType --value avgMonthlyBill --agg average
  tablecast process survey.pdf --output survey.json

Flags:
  --offline         Read XLSX/CSV locally without an extraction model
  --strategy NAME   auto | canonical | generic (default: pipeline.strategy)
  --no-cache        Skip cache lookup and storage
  --output PATH     Write the dataset as JSON; path traversal blocked
  --rows N          Preview row count (0 hides the preview)
  --pie COLUMN      Aggregate COLUMN for a pie chart
  --value COLUMN    Numeric column to aggregate (with --agg)
  --agg TYPE        count | sum | average | min | max
  --verbose         Debug logging
"""

from __future__ import annotations

import asyncio
import json
from functools import partial
from pathlib import Path
from typing import Annotated, get_args

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from tablecast.analysis.analyzer import IndicatorSchemaDetector, analyze_dataset
from tablecast.analysis.charts import (
    AggregationType,
    format_column_name,
    is_valid_pie_chart_column,
    prepare_pie_chart_data,
)
from tablecast.cache.fingerprint import SourceFile
from tablecast.cli.cache import open_cache
from tablecast.cli.errors import (
    err_config,
    err_invalid_option,
    err_no_api_key,
    err_output_path_unsafe,
    err_pipeline,
    err_unknown_column,
    warn_pie_column,
)
from tablecast.cli.logs import configure_logging
from tablecast.config import ConfigError, TablecastConfig, load_config
from tablecast.errors import PipelineError
from tablecast.extract.base import ExtractionOracle
from tablecast.extract.llm_client import provider_of, validate_api_key
from tablecast.extract.llm_oracle import LLMExtractionOracle
from tablecast.extract.spreadsheet import LocalSpreadsheetOracle
from tablecast.normalize.coerce import to_text
from tablecast.pipeline.orchestrator import (
    STRATEGIES,
    Orchestrator,
    PipelineState,
    ProcessResult,
)

console = Console()

_AGGREGATIONS: tuple[str, ...] = get_args(AggregationType)

_STATE_LABELS: dict[PipelineState, str] = {
    PipelineState.IDLE: "Waiting…",
    PipelineState.CACHE_CHECKING: "Checking cache…",
    PipelineState.CACHE_HIT_EXACT: "Loading cached data…",
    PipelineState.DISPLAYING_PROVISIONAL: "Showing cached data…",
    PipelineState.EXTRACTING: "Extracting data…",
    PipelineState.EXTRACTED: "Extraction complete",
    PipelineState.RECONCILING: "Updating cache…",
    PipelineState.DONE: "Done",
    PipelineState.FAILED: "Failed",
}

_PREVIEW_MAX_COLUMNS = 8


def process_cmd(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="PDF, XLSX or CSV file."),
    ],
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Read XLSX/CSV locally without an extraction model."),
    ] = False,
    strategy: Annotated[
        str | None,
        typer.Option("--strategy", help="auto | canonical | generic (default from config)."),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Skip cache lookup and storage."),
    ] = False,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Write the dataset as JSON to this path."),
    ] = None,
    rows: Annotated[
        int,
        typer.Option("--rows", "-n", min=0, help="Number of preview rows (0 hides the preview)."),
    ] = 10,
    pie: Annotated[
        str | None,
        typer.Option("--pie", help="Column to aggregate for a pie chart."),
    ] = None,
    value: Annotated[
        str | None,
        typer.Option("--value", help="Numeric column aggregated per --pie category."),
    ] = None,
    agg: Annotated[
        str,
        typer.Option("--agg", help="count | sum | average | min | max."),
    ] = "count",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Extract, normalize and analyze a tabular document."""
    configure_logging(verbose)

    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    # ---- Option validation ----
    strategy = strategy or cfg.pipeline.strategy
    if strategy not in STRATEGIES:
        console.print(err_invalid_option("--strategy", strategy, STRATEGIES))
        raise typer.Exit(1)
    if agg not in _AGGREGATIONS:
        console.print(err_invalid_option("--agg", agg, _AGGREGATIONS))
        raise typer.Exit(1)

    output_path: Path | None = None
    if output is not None:
        try:
            output_path = validate_output_path(output)
        except ValueError:
            console.print(err_output_path_unsafe(output))
            raise typer.Exit(1)

    # ---- Oracle ----
    oracle = _build_oracle(cfg, offline)

    # ---- Cache ----
    cache = None
    if not no_cache and cfg.cache.enabled:
        cache = open_cache(cfg.cache)

    # ---- Run ----
    analyze = partial(
        analyze_dataset,
        detector=IndicatorSchemaDetector(cfg.analysis.schema_indicators),
        threshold=cfg.analysis.type_threshold,
        categorical_max_unique=cfg.analysis.categorical_max_unique,
        sample_size=cfg.analysis.sample_size,
    )
    source = SourceFile.from_path(file)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            task = prog.add_task(_STATE_LABELS[PipelineState.IDLE], total=None)
            orchestrator = Orchestrator(
                oracle,
                cache,
                strategy=strategy,  # type: ignore[arg-type]
                analyze=analyze,
                on_state=lambda s: prog.update(task, description=_STATE_LABELS[s]),
                on_provisional=_show_provisional,
            )
            result = asyncio.run(orchestrator.process_file(source))
    except PipelineError as exc:
        console.print(err_pipeline(exc))
        raise typer.Exit(1)
    finally:
        if cache is not None:
            cache.close()

    # ---- Present ----
    _print_summary(result)
    _print_columns(result)
    if rows:
        _print_preview(result, rows)
    if pie is not None:
        _print_pie(result, pie, value, agg)

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            json.dumps(result.dataset, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )
        console.print(f"\n[green]✓[/] Wrote {len(result.dataset)} records to {output_path}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def validate_output_path(output: str, allowed_base: Path | None = None) -> Path:
    """Resolve *output*; relative paths must stay inside *allowed_base* (CWD).

    Raises:
        ValueError: If a relative path escapes the allowed base directory.
    """
    path = Path(output)
    if path.is_absolute():
        return path.resolve()

    base = (allowed_base or Path.cwd()).resolve()
    resolved = (base / path).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Output path escapes {base}: {output}")
    return resolved


def _build_oracle(cfg: TablecastConfig, offline: bool) -> ExtractionOracle:
    if offline:
        return LocalSpreadsheetOracle()

    model = cfg.extraction.model
    try:
        validate_api_key(model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(model)))
        raise typer.Exit(1)

    return LLMExtractionOracle(
        model,
        max_tokens=cfg.extraction.max_tokens,
        temperature=cfg.extraction.temperature,
        num_retries=cfg.extraction.num_retries,
        timeout=cfg.extraction.timeout,
        max_document_chars=cfg.extraction.max_document_chars,
    )


def _show_provisional(result: ProcessResult) -> None:
    console.print(
        f"[dim]Found {len(result.dataset)} cached records for a file named "
        f"'{result.file_name}'; re-extracting to check for more…[/]"
    )


def _print_summary(result: ProcessResult) -> None:
    meta = result.metadata
    origin = {
        "cache": "from cache",
        "provisional": "from cache (provisional)",
        "extraction": "freshly extracted",
    }[result.source]
    charts = ", ".join(meta.suggested_chart_types) or "none"
    console.print(f"\n[bold]{result.file_name}[/]  ({origin})")
    console.print(
        f"  Rows: {meta.row_count}  |  Columns: {len(meta.columns)}  |  "
        f"Data type: {meta.data_type}  |  Suggested charts: {charts}"
    )
    if result.cache_updated:
        console.print("  [green]✓[/] Cache updated")


def _print_columns(result: ProcessResult) -> None:
    table = Table(title="Columns", show_header=True, header_style="bold")
    table.add_column("Column", style="bold")
    table.add_column("Type")
    table.add_column("Unique", justify="right")
    table.add_column("Nulls")
    table.add_column("Role")

    for col in result.metadata.columns:
        roles = [r for r, on in (("numerical", col.is_numerical), ("categorical", col.is_categorical)) if on]
        table.add_row(
            format_column_name(col.name),
            col.type,
            str(col.unique_count),
            "yes" if col.has_null_values else "",
            ", ".join(roles),
        )
    console.print(table)


def _print_preview(result: ProcessResult, rows: int) -> None:
    columns = result.metadata.column_names[:_PREVIEW_MAX_COLUMNS]
    if not columns:
        return
    hidden = len(result.metadata.columns) - len(columns)
    title = f"Preview (first {min(rows, len(result.dataset))} of {len(result.dataset)} rows)"
    if hidden > 0:
        title += f", {hidden} more columns in --output"

    table = Table(title=title, show_header=True, header_style="bold")
    for name in columns:
        table.add_column(format_column_name(name), overflow="fold")
    for record in result.dataset[:rows]:
        table.add_row(*(to_text(record.get(name), fallback="") for name in columns))
    console.print(table)


def _print_pie(result: ProcessResult, column: str, value: str | None, agg: str) -> None:
    available = result.metadata.column_names
    for name in (column, value):
        if name is not None and name not in available:
            console.print(err_unknown_column(name, available))
            raise typer.Exit(1)

    if not is_valid_pie_chart_column(result.dataset, column):
        console.print(warn_pie_column(column))

    points = prepare_pie_chart_data(result.dataset, column, value, agg)  # type: ignore[arg-type]
    total = sum(p.value for p in points) or 1.0

    label = format_column_name(column)
    if value is not None and agg != "count":
        label = f"{agg} of {format_column_name(value)} by {label}"
    table = Table(title=f"Pie: {label}", show_header=True, header_style="bold")
    table.add_column("Category", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Share", justify="right")
    for p in points:
        table.add_row(p.name, f"{p.value:g}", f"{p.value / total:.1%}")
    console.print(table)
