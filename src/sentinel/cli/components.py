"""Build pipeline components from the loaded configuration.

Shared by every command so that storage paths, models and the crawl
provider are chosen in exactly one place.
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml
from rich.console import Console

from sentinel.cli.errors import err_config_file
from sentinel.config import SentinelConfig, load_config
from sentinel.ingest.chunker import SentenceChunker
from sentinel.ingest.embedding import EmbeddingConfig, EmbeddingGateway
from sentinel.sources.base import CrawlProvider
from sentinel.sources.tavily import TavilyProvider
from sentinel.sources.web import DirectFetchProvider
from sentinel.store.cache import CACHE_FILENAME, CacheGate
from sentinel.store.knowledge_store import INDEX_FILENAME, KnowledgeStore


def load_or_exit(project_dir: Path, console: Console) -> SentinelConfig:
    """Load config for *project_dir*, printing an actionable error on failure.

    ``ConfigError`` is a ``ValueError``; so are bad numeric values.
    """
    try:
        return load_config(project_dir)
    except (ValueError, yaml.YAMLError, OSError) as exc:
        console.print(err_config_file(exc))
        raise typer.Exit(1) from exc


def build_store(cfg: SentinelConfig) -> KnowledgeStore:
    return KnowledgeStore(cfg.storage_dir / INDEX_FILENAME, embedding_model=cfg.embedding.model)


def build_cache(cfg: SentinelConfig) -> CacheGate:
    return CacheGate(cfg.storage_dir / CACHE_FILENAME)


def build_gateway(cfg: SentinelConfig) -> EmbeddingGateway:
    return EmbeddingGateway(
        EmbeddingConfig(model=cfg.embedding.model, batch_size=cfg.embedding.batch_size)
    )


def build_chunker(cfg: SentinelConfig) -> SentenceChunker:
    return SentenceChunker(
        max_tokens=cfg.chunking.max_tokens, overlap_ratio=cfg.chunking.overlap_ratio
    )


def build_crawler(cfg: SentinelConfig) -> CrawlProvider:
    """Crawl provider selected by ``crawl.provider``."""
    if cfg.crawl.provider == "direct":
        return DirectFetchProvider(timeout=cfg.crawl.timeout)
    return TavilyProvider(
        timeout=cfg.crawl.timeout,
        max_results=cfg.crawl.max_results,
        max_depth=cfg.crawl.max_depth,
        max_pages=cfg.crawl.max_pages,
    )
