"""tablecast CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from tablecast.cli.cache import cache_app
from tablecast.cli.init import init_cmd
from tablecast.cli.process import process_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("tablecast")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tablecast {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="tablecast",
    help=(
        "tablecast: survey documents to chart-ready datasets.\n\n"
        "  tablecast init     Create the global config (and a project template).\n"
        "  tablecast process  Extract, normalize and analyze a PDF/XLSX/CSV table.\n"
        "  tablecast cache    Inspect or clear cached datasets."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """tablecast: survey documents to chart-ready datasets."""


app.command("init")(init_cmd)
app.command("process")(process_cmd)
app.add_typer(cache_app, name="cache")


@app.command("version")
def version_cmd() -> None:
    """Show the installed tablecast version."""
    typer.echo(f"tablecast {_installed_version()}")


if __name__ == "__main__":
    app()
