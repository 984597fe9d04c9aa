"""sentinel crawl — crawl every active source into the knowledge base.

Runs at most once per hour for the same set of sources unless --force is
given. Previously crawled chunks are replaced; curated documents stay.

Usage:
  sentinel crawl
  sentinel crawl --force
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sentinel.cli.components import (
    build_cache,
    build_chunker,
    build_crawler,
    build_gateway,
    build_store,
    load_or_exit,
)
from sentinel.cli.errors import (
    err_configuration,
    err_invalid_source,
    err_no_sources,
    err_storage,
)
from sentinel.ingest.orchestrator import NO_SOURCES_ERROR, IngestEvent, Ingestor
from sentinel.sources.config_source import YamlSourceConfig
from sentinel.store.models import IngestResult

console = Console()


def crawl_cmd(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Ignore the one-hour crawl cache."),
    ] = False,
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Crawl configured sources and index them for retrieval."""
    cfg = load_or_exit(project_dir, console)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Checking sources…", total=None)

        def on_event(event: IngestEvent) -> None:
            if event.kind == "cleared" and event.count:
                console.print(f"  [dim]Cleared {event.count} previously crawled chunks[/]")
            elif event.kind == "source_started" and event.source is not None:
                prog.update(task, description=f"Crawling {event.source.name}…")
            elif event.kind == "page_skipped":
                console.print(f"  [dim]↷ Skipped near-empty page {event.detail}[/]")
            elif event.kind == "source_finished" and event.source is not None:
                if event.detail:
                    console.print(f"  [red]✗[/] {event.source.name}: {event.detail}")
                else:
                    console.print(f"  [green]✓[/] {event.source.name}: {event.count} chunks")

        ingestor = Ingestor(
            source_config=YamlSourceConfig(project_dir),
            crawler=build_crawler(cfg),
            gateway=build_gateway(cfg),
            store=build_store(cfg),
            cache=build_cache(cfg),
            chunker=build_chunker(cfg),
            min_content_chars=cfg.crawl.min_content_chars,
            on_event=on_event,
        )
        try:
            result = ingestor.ingest(force_refresh=force)
        except ValueError as exc:
            console.print(err_invalid_source(exc))
            raise typer.Exit(1) from exc
        except OSError as exc:
            console.print(err_storage(exc))
            raise typer.Exit(1) from exc

    if result.error == NO_SOURCES_ERROR:
        console.print(err_no_sources())
        raise typer.Exit(1)
    if result.error:
        console.print(err_configuration(result.error))
        raise typer.Exit(1)

    if result.cached:
        console.print(
            f"[green]✓[/] Using cached crawl data ({result.cache_age_minutes} minutes old, "
            f"{result.total_chunks_added} chunks). Cache refreshes every hour."
        )
        console.print("  [dim]Run with --force to crawl again now.[/]")
        return

    _show_summary(result)


def _show_summary(result: IngestResult) -> None:
    table = Table(title="Crawl results", show_lines=False)
    table.add_column("Source")
    table.add_column("URL", style="dim")
    table.add_column("Chunks", justify="right")
    table.add_column("Status")
    for sr in result.per_source:
        status = "[green]ok[/]" if sr.success else f"[red]{sr.error}[/]"
        table.add_row(sr.source, sr.url, str(sr.chunks_added), status)
    console.print(table)

    failed = sum(1 for sr in result.per_source if not sr.success)
    console.print(
        f"\n[green]✓[/] Crawled {len(result.per_source)} sources — "
        f"{result.total_chunks_added} chunks added"
        + (f", [red]{failed} failed[/]" if failed else "")
    )
