"""Tests for the tablecast process command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tablecast.cli.main import app
from tablecast.cli.process import validate_output_path

runner = CliRunner()

SURVEY_CSV = (
    "unitName,name,houseType,cookingFuel,avgMonthlyBill\n"
    "Green,Asha,Owned,LPG,1200\n"
    "Blue,Ravi,Rented,PNG,900\n"
    "Green,Meera,Owned,LPG,1500\n"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated CWD, no global config, cache in tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("tablecast.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.setenv("TABLECAST_CACHE_PATH", str(tmp_path / "cache.db"))
    monkeypatch.delenv("TABLECAST_EXTRACTION_MODEL", raising=False)
    return tmp_path


@pytest.fixture
def survey(workspace: Path) -> Path:
    path = workspace / "survey.csv"
    path.write_text(SURVEY_CSV, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Offline processing
# ---------------------------------------------------------------------------


def test_offline_csv_prints_summary(survey: Path) -> None:
    result = runner.invoke(app, ["process", str(survey), "--offline"])
    assert result.exit_code == 0, result.output
    assert "survey.csv" in result.output
    assert "freshly extracted" in result.output
    assert "Rows: 3" in result.output
    assert "Data type: household" in result.output


def test_second_run_is_served_from_cache(survey: Path) -> None:
    first = runner.invoke(app, ["process", str(survey), "--offline"])
    assert first.exit_code == 0, first.output

    second = runner.invoke(app, ["process", str(survey), "--offline"])
    assert second.exit_code == 0, second.output
    assert "(from cache)" in second.output


def test_no_cache_skips_storage(survey: Path, workspace: Path) -> None:
    result = runner.invoke(app, ["process", str(survey), "--offline", "--no-cache"])
    assert result.exit_code == 0, result.output
    assert "Cache updated" not in result.output
    assert not (workspace / "cache.db").exists()


def test_generic_strategy_keeps_free_form_columns(survey: Path) -> None:
    result = runner.invoke(
        app, ["process", str(survey), "--offline", "--strategy", "generic", "--no-cache"]
    )
    assert result.exit_code == 0, result.output
    assert "Columns: 5" in result.output


def test_pie_counts_categories(survey: Path) -> None:
    result = runner.invoke(
        app, ["process", str(survey), "--offline", "--rows", "0", "--pie", "cookingFuel"]
    )
    assert result.exit_code == 0, result.output
    assert "Pie: Cooking Fuel" in result.output
    assert "LPG" in result.output
    assert "66.7%" in result.output


def test_pie_with_value_aggregation(survey: Path) -> None:
    result = runner.invoke(
        app,
        [
            "process", str(survey), "--offline", "--rows", "0",
            "--pie", "unitName", "--value", "avgMonthlyBill", "--agg", "sum",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "2700" in result.output


def test_output_writes_json(survey: Path, workspace: Path) -> None:
    result = runner.invoke(
        app, ["process", str(survey), "--offline", "--output", "out/survey.json"]
    )
    assert result.exit_code == 0, result.output
    assert "Wrote 3 records" in result.output

    records = json.loads((workspace / "out" / "survey.json").read_text(encoding="utf-8"))
    assert len(records) == 3
    assert records[0]["unitName"] == "Green"
    assert records[0]["avgMonthlyBill"] == 1200.0
    assert records[0]["hasSolarPanels"] is False


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_missing_api_key_exits_1(survey: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["process", str(survey)])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_offline_pdf_exits_1(workspace: Path) -> None:
    pdf = workspace / "survey.pdf"
    pdf.write_bytes(b"%PDF-1.4\n%%EOF\n")
    result = runner.invoke(app, ["process", str(pdf), "--offline", "--no-cache"])
    assert result.exit_code == 1
    assert "without --offline" in result.output


def test_empty_csv_exits_1(workspace: Path) -> None:
    empty = workspace / "empty.csv"
    empty.write_text("", encoding="utf-8")
    result = runner.invoke(app, ["process", str(empty), "--offline", "--no-cache"])
    assert result.exit_code == 1
    assert "Error" in result.output


@pytest.mark.parametrize(
    "args, bad",
    [
        (["--agg", "median"], "median"),
        (["--strategy", "fastest"], "fastest"),
    ],
)
def test_invalid_option_values_exit_1(survey: Path, args: list[str], bad: str) -> None:
    result = runner.invoke(app, ["process", str(survey), "--offline", *args])
    assert result.exit_code == 1
    assert bad in result.output


def test_unknown_pie_column_exits_1(survey: Path) -> None:
    result = runner.invoke(app, ["process", str(survey), "--offline", "--pie", "nope"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_output_path_traversal_blocked(survey: Path) -> None:
    result = runner.invoke(
        app, ["process", str(survey), "--offline", "--output", "../../escape.json"]
    )
    assert result.exit_code == 1
    assert "not allowed" in result.output


def test_invalid_project_config_exits_1(survey: Path, workspace: Path) -> None:
    (workspace / "tablecast.yaml").write_text("pipeline:\n  strategy: fastest\n", encoding="utf-8")
    result = runner.invoke(app, ["process", str(survey), "--offline"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# validate_output_path
# ---------------------------------------------------------------------------


def test_validate_output_path_relative_inside_base(tmp_path: Path) -> None:
    assert validate_output_path("a/b.json", tmp_path) == (tmp_path / "a" / "b.json").resolve()


def test_validate_output_path_rejects_escape(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        validate_output_path("../b.json", tmp_path)


def test_validate_output_path_allows_absolute(tmp_path: Path) -> None:
    target = tmp_path / "abs.json"
    assert validate_output_path(str(target), tmp_path / "elsewhere") == target.resolve()
