"""sentinel status command.

Shows the knowledge base (chunk counts by origin, model, dimensions) and
the crawl cache state. Works without a sentinel.yaml.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sentinel.cli.components import build_cache, build_store, load_or_exit
from sentinel.cli.errors import err_storage
from sentinel.config import SentinelConfig
from sentinel.store.cache import CacheGate
from sentinel.store.knowledge_store import KnowledgeStore
from sentinel.store.models import EPOCH, to_iso

console = Console()


def status_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Show knowledge base and crawl cache status."""
    cfg = load_or_exit(project_dir, console)

    _show_config_panel(cfg)
    try:
        _show_knowledge_panel(build_store(cfg))
    except OSError as exc:
        console.print(err_storage(exc))
        raise typer.Exit(1) from exc
    except ValueError as exc:
        console.print(f"[red]Error:[/] Knowledge base file is corrupt: {exc}")
        raise typer.Exit(1) from exc
    _show_cache_panel(build_cache(cfg))


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_config_panel(cfg: SentinelConfig) -> None:
    lines = [
        f"Storage:    {cfg.storage_dir}",
        f"Embedding:  {cfg.embedding.model}",
        f"Generation: {cfg.generation.model}",
        f"Crawler:    {cfg.crawl.provider}",
        f"Sources:    {len(cfg.sources)}  |  Documents: {len(cfg.documents)}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Project[/]", expand=False))


def _show_knowledge_panel(store: KnowledgeStore) -> None:
    if not store.path.exists():
        console.print(
            Panel(
                "[yellow]No knowledge base yet.[/]\n"
                "  Run:  sentinel crawl  or  sentinel sync",
                title="[bold]Knowledge Base[/]",
                expand=False,
            )
        )
        return

    stats = store.stats()
    table = Table(show_header=False, box=None)
    table.add_column("key", style="dim")
    table.add_column("value")
    table.add_row("Chunks", f"{stats.total:,}")
    table.add_row("Crawled", f"{stats.crawled:,}")
    table.add_row("Curated", f"{stats.curated:,}")
    table.add_row("Documents", f"{stats.documents:,}")
    table.add_row("Model", stats.embedding_model or "-")
    table.add_row("Dimensions", str(stats.dimensions) if stats.dimensions else "-")
    generated = to_iso(stats.generated_at) if stats.generated_at != EPOCH else "never"
    table.add_row("Generated", generated)
    console.print(Panel(table, title="[bold]Knowledge Base[/]", expand=False))


def _show_cache_panel(cache: CacheGate) -> None:
    metadata = cache.load()
    if metadata is None:
        body = "[yellow]No crawl recorded.[/]"
    else:
        fresh = cache.is_valid()
        body = (
            f"Last run:  {to_iso(metadata.last_run_at)} ({cache.age_minutes()} minutes ago)\n"
            f"Chunks:    {metadata.chunks_added}\n"
            f"State:     {'[green]fresh[/]' if fresh else '[yellow]expired[/]'}"
        )
    console.print(Panel(body, title="[bold]Crawl cache[/]", expand=False))
