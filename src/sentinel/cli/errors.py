"""Sentinel rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from sentinel.cli.errors import err_config_file
    console.print(err_config_file(exc))
    raise typer.Exit(1)
"""

from __future__ import annotations

from sentinel.rag.llm_client import provider_env_var


def err_no_api_key(model: str) -> str:
    """No API key for the provider of *model*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    provider = model.split("/")[0] if "/" in model else "openai"
    env_var = provider_env_var(model) or f"{provider.upper()}_API_KEY"
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_config_file(exc: Exception) -> str:
    """sentinel.yaml or the global config could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration: {exc}\n"
        "  Fix sentinel.yaml (or ~/.sentinel/config.yaml) and retry."
    )


def err_configuration(message: str) -> str:
    """A collaborator is misconfigured, or stored vectors do not fit the embedding model."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Export the missing variable or fix sentinel.yaml, then retry."
    )


def err_no_sources() -> str:
    """No active crawl sources configured."""
    return (
        "[red]Error:[/] No active crawl sources configured.\n\n"
        "  Add at least one source to sentinel.yaml:\n"
        "    sources:\n"
        "      - name: OWASP Cheat Sheets\n"
        "        url: https://cheatsheetseries.owasp.org/"
    )


def err_invalid_source(exc: Exception) -> str:
    """A source or document record in sentinel.yaml is malformed."""
    return (
        f"[red]Error:[/] Malformed record in sentinel.yaml: {exc}\n"
        "  Every source needs an http(s) url and an integer order."
    )


def err_embedding_failed(exc: Exception) -> str:
    return (
        f"[red]Error:[/] Embedding request failed: {exc}\n"
        "  Check the embedding model name and your provider quota, then retry."
    )


def err_completion_failed(exc: Exception) -> str:
    return (
        f"[red]Error:[/] Answer generation failed: {exc}\n"
        "  Check generation.model and your provider quota, then retry."
    )


def err_empty_knowledge_base() -> str:
    """The knowledge index has no crawled content yet."""
    return (
        "[yellow]The knowledge base has no crawled content yet.[/]\n"
        "  Run:  sentinel crawl"
    )


def err_storage(exc: OSError) -> str:
    return (
        f"[red]Error:[/] Could not read or write the knowledge store: {exc}\n"
        "  Check storage.dir in sentinel.yaml and its permissions."
    )
