"""tablecast rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from tablecast.cli.errors import err_no_api_key
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from tablecast.errors import (
    ExtractionFormatError,
    ExtractionServiceError,
    NoDataExtractedError,
    PipelineError,
    UnsupportedFileError,
)


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-...\n"
        "  Or run without a model:  tablecast process FILE --offline"
    )


def err_config(detail: str) -> str:
    """Config file is invalid or contains a forbidden key."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {detail}\n"
        "  Fix ~/.tablecast/config.yaml or ./tablecast.yaml and retry."
    )


def err_invalid_option(option: str, value: str, allowed: list[str] | tuple[str, ...]) -> str:
    """A CLI option received a value outside its allowed set."""
    return (
        f"[red]Error:[/] Invalid value for {option}: '{value}'.\n"
        f"  Use one of: {', '.join(allowed)}"
    )


def err_pipeline(exc: PipelineError) -> str:
    """Processing failed with no dataset to show; hint depends on the cause."""
    if isinstance(exc, UnsupportedFileError):
        hint = "Convert the document to PDF, XLSX or CSV and retry."
        if exc.mime_type == "application/pdf":
            hint = "Run without --offline to extract PDFs with the model."
    elif isinstance(exc, ExtractionFormatError):
        hint = "Retry, or try a different model via TABLECAST_EXTRACTION_MODEL."
    elif isinstance(exc, ExtractionServiceError):
        hint = "Check your network connection and API key, then retry."
    elif isinstance(exc, NoDataExtractedError):
        hint = "Check that the document contains a readable table."
    else:
        hint = "Retry the command."
    return f"[red]Error:[/] {exc.user_message}\n  {hint}"


def err_unknown_column(column: str, available: list[str]) -> str:
    """--pie or --value names a column the dataset does not have."""
    listed = ", ".join(available) if available else "(none)"
    return (
        f"[red]Error:[/] Column '{column}' not found in the dataset.\n"
        f"  Available columns: {listed}"
    )


def err_output_path_unsafe(path: str) -> str:
    """--output path fails validation."""
    return (
        f"[red]Error:[/] Output path is not allowed: '{path}'\n"
        "  Use a path within the current working directory."
    )


def warn_cache_unavailable(path: str, detail: str) -> str:
    """Cache database could not be opened; processing continues without it."""
    return (
        f"[yellow]Warning:[/] Cache unavailable at '{path}': {detail}\n"
        "  Continuing without cache. Set cache.path in tablecast.yaml to a writable location."
    )


def warn_pie_column(column: str) -> str:
    """Column has too few or too many categories for a readable pie chart."""
    return (
        f"[yellow]Warning:[/] '{column}' needs 2–15 distinct values for a readable pie chart.\n"
        "  Showing the aggregation anyway."
    )
