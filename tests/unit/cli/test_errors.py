"""Tests for tablecast rich error messages."""

from __future__ import annotations

import pytest

from tablecast.cli.errors import (
    err_config,
    err_invalid_option,
    err_no_api_key,
    err_output_path_unsafe,
    err_pipeline,
    err_unknown_column,
    warn_cache_unavailable,
    warn_pie_column,
)
from tablecast.errors import (
    ExtractionFormatError,
    ExtractionServiceError,
    NoDataExtractedError,
    SupersededError,
    UnsupportedFileError,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    """Every error must contain an actionable instruction."""
    lower = msg.lower()
    return any(
        kw in lower
        for kw in ["set:", "set ", "use ", "use:", "run ", "retry", "fix ", "check ", "convert ", "available"]
    )


# ---------------------------------------------------------------------------
# err_no_api_key
# ---------------------------------------------------------------------------


def test_err_no_api_key_contains_env_var() -> None:
    msg = err_no_api_key("openai")
    assert "openai" in msg
    assert "OPENAI_API_KEY" in msg
    assert "--offline" in msg


def test_err_no_api_key_unknown_provider_fallback() -> None:
    assert "MYPROVIDER_API_KEY" in err_no_api_key("myprovider")


# ---------------------------------------------------------------------------
# err_pipeline
# ---------------------------------------------------------------------------


def test_err_pipeline_offline_pdf_suggests_model() -> None:
    msg = err_pipeline(UnsupportedFileError("survey.pdf", "application/pdf"))
    assert "survey.pdf" in msg
    assert "without --offline" in msg


def test_err_pipeline_unknown_format_suggests_conversion() -> None:
    msg = err_pipeline(UnsupportedFileError("notes.docx", "application/msword"))
    assert "Convert" in msg


@pytest.mark.parametrize(
    "exc, hint",
    [
        (ExtractionFormatError("not json"), "TABLECAST_EXTRACTION_MODEL"),
        (ExtractionServiceError("openai/gpt-4o-mini", RuntimeError("timeout")), "network"),
        (NoDataExtractedError("empty.pdf"), "readable table"),
        (SupersededError("old.pdf"), "Retry"),
    ],
)
def test_err_pipeline_hint_matches_cause(exc, hint) -> None:
    msg = err_pipeline(exc)
    assert exc.user_message in msg
    assert hint in msg


# ---------------------------------------------------------------------------
# Remaining messages
# ---------------------------------------------------------------------------


def test_err_invalid_option_lists_allowed() -> None:
    msg = err_invalid_option("--agg", "median", ("count", "sum"))
    assert "median" in msg
    assert "count, sum" in msg


def test_err_unknown_column_lists_available() -> None:
    msg = err_unknown_column("fuel", ["cookingFuel", "houseType"])
    assert "'fuel'" in msg
    assert "cookingFuel, houseType" in msg
    assert "(none)" in err_unknown_column("fuel", [])


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("openai"),
        err_config("bad value"),
        err_invalid_option("--strategy", "x", ("auto",)),
        err_pipeline(NoDataExtractedError("a.pdf")),
        err_unknown_column("x", ["y"]),
        err_output_path_unsafe("../../etc/passwd"),
        warn_cache_unavailable("/ro/cache.db", "read-only"),
    ],
)
def test_every_message_has_action(msg: str) -> None:
    assert _has_action(msg), msg


def test_warn_pie_column_mentions_column() -> None:
    assert "cookingFuel" in warn_pie_column("cookingFuel")
