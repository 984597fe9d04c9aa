"""sentinel ask — answer a question grounded in the knowledge base.

Crawled content is tried first; curated documents are the fallback. The
answer is streamed to the terminal as it is generated.

Usage:
  sentinel ask "How do I harden SSH?"
  sentinel ask "What is CSP?" --top-k 8
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from sentinel.cli.components import build_gateway, build_store, load_or_exit
from sentinel.cli.errors import (
    err_completion_failed,
    err_embedding_failed,
    err_empty_knowledge_base,
    err_no_api_key,
    err_storage,
)
from sentinel.errors import CompletionError, ConfigurationError, EmbeddingError
from sentinel.rag.context import answer_context
from sentinel.rag.llm_client import stream_complete, validate_api_key
from sentinel.rag.retriever import Retriever
from sentinel.sources.config_source import YamlSourceConfig

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="The question to answer.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Chunks used from general retrieval."),
    ] = None,
    show_context: Annotated[
        bool,
        typer.Option("--show-context", help="Print the retrieved chunks before answering."),
    ] = False,
    project_dir: Annotated[
        Path,
        typer.Option("--project-dir", "-C", help="Directory containing sentinel.yaml."),
    ] = Path("."),
) -> None:
    """Ask a question and stream a grounded answer."""
    cfg = load_or_exit(project_dir, console)

    for model in (cfg.embedding.model, cfg.generation.model):
        try:
            validate_api_key(model)
        except ConfigurationError as exc:
            console.print(err_no_api_key(model))
            raise typer.Exit(1) from exc

    retriever = Retriever(build_store(cfg), build_gateway(cfg))
    base_prompt = YamlSourceConfig(project_dir).system_prompt()

    try:
        ctx = answer_context(
            question,
            retriever,
            base_prompt,
            top_k=top_k or cfg.retrieval.top_k,
            crawled_top_k=cfg.retrieval.crawled_top_k,
        )
    except EmbeddingError as exc:
        console.print(err_embedding_failed(exc))
        raise typer.Exit(1) from exc
    except OSError as exc:
        console.print(err_storage(exc))
        raise typer.Exit(1) from exc

    if ctx.mode == "none":
        console.print(err_empty_knowledge_base())
    elif ctx.mode == "general":
        console.print("  [dim]No crawled content matched — using curated documents.[/]")

    if show_context:
        for i, chunk in enumerate(ctx.chunks, start=1):
            console.print(f"[bold][Chunk {i}][/] [dim]{chunk.document_title}[/]")
            console.print(chunk.content, markup=False)
            console.print()

    try:
        for delta in stream_complete(
            cfg.generation.model,
            ctx.system_prompt,
            [{"role": "user", "content": question}],
            max_tokens=cfg.generation.max_tokens,
        ):
            console.print(delta, end="", markup=False, highlight=False)
    except CompletionError as exc:
        console.print()
        console.print(err_completion_failed(exc))
        raise typer.Exit(1) from exc
    console.print()

    if ctx.documents:
        console.print("\n[dim]Sources:[/]")
        for title, _slug in ctx.documents:
            console.print(f"  [dim]• {title}[/]")
