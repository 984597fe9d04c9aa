"""sentinel clear — remove every chunk carrying a tag.

Clearing the ``crawled`` tag also resets the crawl cache so the next
``sentinel crawl`` runs immediately.

Usage:
  sentinel clear --tag crawled
  sentinel clear --tag runbook --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from sentinel.cli.components import build_cache, build_store, load_or_exit
from sentinel.cli.errors import err_storage
from sentinel.store.models import CRAWLED_TAG

console = Console()


def clear_cmd(
    tag: Annotated[
        str,
        typer.Option("--tag", "-t", help="Remove chunks with this tag."),
    ] = CRAWLED_TAG,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Delete all chunks tagged TAG from the knowledge base."""
    cfg = load_or_exit(project_dir, console)
    store = build_store(cfg)

    try:
        matching = sum(1 for c in store.load().chunks if tag in c.tags)
        if matching == 0:
            console.print(f"[dim]No chunks tagged '{tag}' — nothing to remove.[/]")
            raise typer.Exit(0)

        console.print(f"\nRemove [bold]{matching}[/] chunks tagged '{tag}'.")
        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        result = store.delete_by_tag(tag)
    except OSError as exc:
        console.print(err_storage(exc))
        raise typer.Exit(1) from exc

    console.print(f"[green]✓[/] Removed {result.removed_count} chunks tagged '{tag}'")
    if tag == CRAWLED_TAG and build_cache(cfg).clear():
        console.print("  [dim]Crawl cache reset.[/]")
