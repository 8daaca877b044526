"""Tests for the tablecast init command."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from tablecast.cli.main import app
from tablecast.config import load_config

runner = CliRunner()


@pytest.fixture
def global_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "home" / ".tablecast" / "config.yaml"
    monkeypatch.setattr("tablecast.config._GLOBAL_CONFIG_PATH", path)
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TABLECAST_EXTRACTION_MODEL", raising=False)
    monkeypatch.delenv("TABLECAST_CACHE_PATH", raising=False)
    return path


def test_init_creates_global_config(global_path: Path) -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    assert "Global config" in result.output
    assert global_path.exists()
    assert not Path("tablecast.yaml").exists()


def test_init_keeps_existing_global_config(global_path: Path) -> None:
    global_path.parent.mkdir(parents=True)
    global_path.write_text("extraction:\n  model: custom/model\n", encoding="utf-8")
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    assert "custom/model" in global_path.read_text(encoding="utf-8")


def test_init_project_writes_loadable_template(global_path: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["init", "--project"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "tablecast.yaml").exists()

    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)
    assert cfg.pipeline.strategy == "auto"
    assert cfg.extraction.model == "openai/gpt-4o-mini"


def test_init_project_leaves_existing_file(global_path: Path, tmp_path: Path) -> None:
    (tmp_path / "tablecast.yaml").write_text("pipeline:\n  strategy: generic\n", encoding="utf-8")
    result = runner.invoke(app, ["init", "--project"])
    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert "generic" in (tmp_path / "tablecast.yaml").read_text(encoding="utf-8")
