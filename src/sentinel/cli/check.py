"""sentinel check — report crawl cache freshness without crawling."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from sentinel.cli.components import build_cache, load_or_exit
from sentinel.cli.errors import err_invalid_source
from sentinel.ingest.orchestrator import ingest_status
from sentinel.sources.config_source import YamlSourceConfig
from sentinel.store.models import to_iso

console = Console()


def check_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Show whether the crawl cache is fresh for the configured sources."""
    cfg = load_or_exit(project_dir, console)
    try:
        status = ingest_status(YamlSourceConfig(project_dir), build_cache(cfg))
    except ValueError as exc:
        console.print(err_invalid_source(exc))
        raise typer.Exit(1) from exc

    if status.valid:
        state = "[green]fresh[/]"
    elif status.has_cache:
        state = "[yellow]stale[/] (expired or sources changed)"
    else:
        state = "[yellow]never crawled[/]"

    lines = [f"Cache:    {state}"]
    if status.has_cache:
        lines.append(f"Age:      {status.age_minutes} minutes")
        lines.append(f"Last run: {to_iso(status.last_run_at)}" if status.last_run_at else "Last run: -")
        lines.append(f"Chunks:   {status.chunks_in_cache}")
    lines.append(f"Sources:  {len(status.sources)}")
    for source in status.sources:
        lines.append(f"  • {source.name} [dim]({source.url})[/]")

    console.print(Panel("\n".join(lines), title="[bold]Crawl cache[/]", expand=False))
    if not status.valid:
        console.print("  Run:  sentinel crawl")
