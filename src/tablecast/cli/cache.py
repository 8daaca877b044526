"""tablecast cache CLI commands.

Commands:
  tablecast cache info      show cached files, entry count and stored size
  tablecast cache clear     remove every cached dataset
  tablecast cache cleanup   remove expired and corrupted entries
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tablecast.cache.store import CacheStore
from tablecast.cli.errors import err_config, warn_cache_unavailable
from tablecast.config import CacheCfg, ConfigError, load_config
from tablecast.db.kv import StorageError, open_sqlite_store

console = Console()

cache_app = typer.Typer(
    name="cache",
    help="Inspect and manage the dataset cache (info, clear, cleanup).",
    add_completion=False,
)

_DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Cache database path (default: cache.path from config)."),
]


def open_cache(
    cfg: CacheCfg, db_path: Path | None = None, *, cleanup: bool = True
) -> CacheStore | None:
    """Open the configured cache, or warn and return None if it is unusable."""
    path = db_path if db_path is not None else Path(cfg.path).expanduser()
    try:
        substrate = open_sqlite_store(path, max_bytes=cfg.max_bytes)
    except StorageError as exc:
        console.print(warn_cache_unavailable(str(path), str(exc)))
        return None
    return CacheStore(substrate, ttl_hours=cfg.ttl_hours, prefix=cfg.prefix).open(cleanup=cleanup)


def _require_cache(db: Path | None, *, cleanup: bool = True) -> CacheStore:
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    store = open_cache(cfg.cache, db, cleanup=cleanup)
    if store is None:
        raise typer.Exit(1)
    return store


@cache_app.command("info")
def cache_info_cmd(db: _DbOption = None) -> None:
    """Show cached files, entry count and stored size."""
    store = _require_cache(db)
    try:
        info = store.info()
    finally:
        store.close()

    console.print(
        f"[bold]Entries:[/] {info.total_entries}  |  "
        f"[bold]Size:[/] {_human_size(info.total_size)}"
    )
    if not info.files:
        console.print("[dim]No cached files.[/]")
        return

    table = Table(title="Cached Files", show_header=True, header_style="bold")
    table.add_column("File", style="bold")
    table.add_column("Records", justify="right")
    table.add_column("Cached at")
    for f in sorted(info.files, key=lambda f: f.timestamp, reverse=True):
        table.add_row(f.name, str(f.records), f.timestamp.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@cache_app.command("clear")
def cache_clear_cmd(
    db: _DbOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove every cached dataset."""
    if not yes and not typer.confirm("Remove all cached datasets?", default=False):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    store = _require_cache(db)
    try:
        removed = store.clear_all()
    finally:
        store.close()
    console.print(f"[green]✓[/] Removed {removed} cache entries")


@cache_app.command("cleanup")
def cache_cleanup_cmd(db: _DbOption = None) -> None:
    """Remove expired and corrupted cache entries."""
    store = _require_cache(db, cleanup=False)
    try:
        removed = store.expire_and_cleanup()
    finally:
        store.close()
    console.print(f"[green]✓[/] Cleanup complete ({removed} entries removed)")


def _human_size(n: int) -> str:
    size = float(n)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
