"""sentinel sync — re-index the curated documents listed in sentinel.yaml.

Curated chunks are rebuilt from scratch; crawled chunks are kept as-is.
Documents that cannot be read are reported and skipped.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from sentinel.cli.components import build_chunker, build_gateway, build_store, load_or_exit
from sentinel.cli.errors import (
    err_configuration,
    err_embedding_failed,
    err_invalid_source,
    err_storage,
)
from sentinel.errors import ConfigurationError, EmbeddingError, EmbeddingMismatchError
from sentinel.ingest.documents import DocumentIndexer
from sentinel.sources.config_source import YamlSourceConfig

console = Console()


def sync_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Rebuild the curated part of the knowledge base."""
    cfg = load_or_exit(project_dir, console)

    try:
        records = YamlSourceConfig(project_dir).list_documents()
    except ValueError as exc:
        console.print(err_invalid_source(exc))
        raise typer.Exit(1) from exc

    gateway = build_gateway(cfg)
    if records:
        try:
            gateway.validate()
        except ConfigurationError as exc:
            console.print(err_configuration(str(exc)))
            raise typer.Exit(1) from exc

    indexer = DocumentIndexer(
        gateway=gateway,
        store=build_store(cfg),
        chunker=build_chunker(cfg),
        base_dir=cfg.base_dir,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task(f"Indexing {len(records)} documents…", total=None)
        try:
            result = indexer.rebuild(records)
        except EmbeddingError as exc:
            console.print(err_embedding_failed(exc))
            raise typer.Exit(1) from exc
        except EmbeddingMismatchError as exc:
            console.print(err_configuration(str(exc)))
            raise typer.Exit(1) from exc
        except OSError as exc:
            console.print(err_storage(exc))
            raise typer.Exit(1) from exc

    for issue in result.issues:
        console.print(f"  [yellow]⚠[/] {issue.title} ({issue.document_id}): {issue.reason}")

    console.print(
        f"[green]✓[/] Knowledge base regenerated — {result.curated_chunks} curated chunks, "
        f"{len(result.index.chunks)} total ({result.index.embedding_model})"
    )
