"""tablecast init — create the global config and a project config template.

Creates:
  ~/.tablecast/config.yaml   global defaults (created once, mode 0o600)
  ./tablecast.yaml           per-project overrides (with --project)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from tablecast.config import ensure_global_config

console = Console()

_PROJECT_TEMPLATE = """\
# tablecast project configuration: overrides ~/.tablecast/config.yaml.
# API keys belong in environment variables, never in this file.

extraction:
  # model: openai/gpt-4o-mini

cache:
  # ttl_hours: 24
  # enabled: true

analysis:
  # schema_indicators: [unitname, familymembers, housetype, monthlybill, energy]

pipeline:
  strategy: auto  # auto | canonical | generic
"""


def init_cmd(
    project: Annotated[
        bool,
        typer.Option("--project", help="Also write a tablecast.yaml template in the current directory."),
    ] = False,
) -> None:
    """Create the global config file (and optionally a project template)."""
    global_path = ensure_global_config()
    console.print(f"[green]✓[/] Global config: {global_path}")

    if not project:
        return

    project_path = Path.cwd() / "tablecast.yaml"
    if project_path.exists():
        console.print(f"[yellow]⚠[/]  {project_path.name} already exists, left unchanged.")
        return
    project_path.write_text(_PROJECT_TEMPLATE, encoding="utf-8")
    console.print(f"[green]✓[/] Project config: {project_path}")
