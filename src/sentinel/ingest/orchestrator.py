"""Crawl ingestion: sources → pages → normalize → chunk → embed → store.

One ``Ingestor.ingest()`` call:
  1. Read the active sources. None configured → error result, nothing touched.
  2. Cache gate. Fresh run for the same source signature → cached result.
  3. Validate the crawl provider and embedding gateway configuration, and
     check that new vectors can sit beside the stored curated chunks.
  4. Delete every previously crawled chunk (curated chunks stay).
  5. Crawl sources one at a time. A failing source is recorded and skipped;
     chunks already stored for it are kept.
  6. Record the run in the cache gate.

Storage errors (``OSError``) and malformed source records (``ValueError``)
propagate to the caller. Everything else comes back as data.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sentinel.errors import (
    ConfigurationError,
    CrawlError,
    EmbeddingError,
    EmbeddingMismatchError,
    ExtractionError,
)
from sentinel.ingest.chunker import SentenceChunker
from sentinel.ingest.embedding import EmbeddingGateway
from sentinel.ingest.normalize import normalize
from sentinel.sources.base import CrawlProvider, SourceConfig
from sentinel.sources.pages import UNTITLED
from sentinel.store.cache import CacheGate, sources_signature
from sentinel.store.knowledge_store import KnowledgeStore
from sentinel.store.models import (
    CRAWLED_TAG,
    WEB_TAG,
    Chunk,
    Document,
    IngestResult,
    KnowledgeIndex,
    PageRecord,
    Priority,
    SourceRecord,
    SourceResult,
    slugify_url,
)

NO_SOURCES_ERROR = "No active crawl sources configured. Add sources to sentinel.yaml."
NO_CONTENT_ERROR = "No content chunks generated from crawled content"
MIN_CONTENT_CHARS = 20
CRAWLED_LANGUAGE = "en"
DIMENSION_CHECK_TEXT = "embedding dimension check"
REINDEX_HINT = (
    "Set embedding.model back to the model the knowledge base was built with, "
    "or run `sentinel clear -y` and `sentinel sync` to re-embed curated documents."
)


@dataclass(frozen=True)
class IngestEvent:
    """Progress notification emitted while ingesting.

    kind is one of ``source_started``, ``source_finished``, ``page_skipped``
    or ``cleared``.
    """

    kind: str
    source: SourceRecord | None = None
    detail: str = ""
    count: int = 0


@dataclass(frozen=True)
class CacheStatus:
    """Cache freshness for the currently configured sources."""

    valid: bool
    has_cache: bool
    age_minutes: int | None
    last_run_at: datetime | None
    chunks_in_cache: int
    sources: list[SourceRecord]


def crawled_document(source: SourceRecord, page: PageRecord, content: str) -> Document:
    """Wrap a crawled page as a Document tagged ``crawled`` and ``web``."""
    return Document(
        id=f"crawled-{uuid.uuid4().hex}",
        title=f"[{source.name}] {page.title or UNTITLED}",
        slug=slugify_url(page.url),
        content=content,
        tags=frozenset({CRAWLED_TAG, WEB_TAG}),
        language=CRAWLED_LANGUAGE,
        priority=Priority.STANDARD,
    )


class Ingestor:
    """Run crawl ingestion against the configured sources.

    Args:
        source_config: Supplies the active source list.
        crawler: Crawl provider used for every source.
        gateway: Embedding gateway.
        store: Knowledge store receiving the chunks.
        cache: Cache gate guarding repeated runs.
        chunker: Chunker; defaults to ``SentenceChunker()``.
        min_content_chars: Pages with stripped text this short or shorter
            are skipped.
        on_event: Optional progress callback.
    """

    def __init__(
        self,
        source_config: SourceConfig,
        crawler: CrawlProvider,
        gateway: EmbeddingGateway,
        store: KnowledgeStore,
        cache: CacheGate,
        chunker: SentenceChunker | None = None,
        min_content_chars: int = MIN_CONTENT_CHARS,
        on_event: Callable[[IngestEvent], None] | None = None,
    ) -> None:
        self.source_config = source_config
        self.crawler = crawler
        self.gateway = gateway
        self.store = store
        self.cache = cache
        self.chunker = chunker or SentenceChunker()
        self.min_content_chars = min_content_chars
        self._on_event = on_event

    def ingest(self, force_refresh: bool = False) -> IngestResult:
        sources = self.source_config.list_active_sources()
        if not sources:
            return IngestResult(error=NO_SOURCES_ERROR)

        signature = sources_signature(sources)
        if not force_refresh and self.cache.is_valid(signature):
            metadata = self.cache.load()
            return IngestResult(
                total_chunks_added=metadata.chunks_added if metadata else 0,
                cached=True,
                cache_age_minutes=self.cache.age_minutes(),
                last_run_at=metadata.last_run_at if metadata else None,
            )

        try:
            self.crawler.validate()
            self.gateway.validate()
            check_embedding_compatibility(self.store.load(), self.gateway)
        except (ConfigurationError, EmbeddingError) as exc:
            return IngestResult(error=str(exc))

        removed = self.store.delete_by_tag(CRAWLED_TAG).removed_count
        self._emit(IngestEvent("cleared", count=removed))

        result = IngestResult(removed_chunks=removed, cache_age_minutes=0)
        for source in sources:
            self._emit(IngestEvent("source_started", source=source))
            source_result = self._ingest_source(source)
            result.per_source.append(source_result)
            result.total_chunks_added += source_result.chunks_added
            self._emit(
                IngestEvent(
                    "source_finished",
                    source=source,
                    detail=source_result.error or "",
                    count=source_result.chunks_added,
                )
            )

        metadata = self.cache.record_run(signature, result.total_chunks_added)
        result.last_run_at = metadata.last_run_at
        return result

    # ------------------------------------------------------------------
    # Per-source pipeline
    # ------------------------------------------------------------------

    def _ingest_source(self, source: SourceRecord) -> SourceResult:
        added = 0
        try:
            pages = self.crawler.fetch_pages(source.url)
            for page in pages:
                if len(page.text.strip()) <= self.min_content_chars:
                    self._emit(IngestEvent("page_skipped", source=source, detail=page.url))
                    continue
                added += self._ingest_page(source, page)
        except (CrawlError, EmbeddingError, ExtractionError) as exc:
            return SourceResult(
                source=source.name, url=source.url, success=False,
                chunks_added=added, error=str(exc),
            )

        if added == 0:
            return SourceResult(
                source=source.name, url=source.url, success=False, error=NO_CONTENT_ERROR
            )
        return SourceResult(source=source.name, url=source.url, success=True, chunks_added=added)

    def _ingest_page(self, source: SourceRecord, page: PageRecord) -> int:
        """Index one page; returns the number of chunks stored."""
        document = crawled_document(source, page, normalize(page.text))
        pieces = self.chunker.chunk(document)
        if not pieces:
            return 0

        vectors = self.gateway.embed_batch([p.content for p in pieces])
        chunks = [
            Chunk(
                id=f"{document.id}-{piece.index}",
                document_id=document.id,
                document_title=document.title,
                slug=document.slug,
                chunk_index=piece.index,
                content=piece.content,
                embedding=vector,
                priority=document.priority,
                language=document.language,
                tags=document.tags,
            )
            for piece, vector in zip(pieces, vectors)
        ]
        self.store.append_chunks(chunks)
        return len(chunks)

    def _emit(self, event: IngestEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)


def ingest_status(source_config: SourceConfig, cache: CacheGate) -> CacheStatus:
    """Report cache freshness for the current sources without crawling."""
    sources = source_config.list_active_sources()
    metadata = cache.load()
    return CacheStatus(
        valid=cache.is_valid(sources_signature(sources)),
        has_cache=metadata is not None,
        age_minutes=cache.age_minutes(),
        last_run_at=metadata.last_run_at if metadata else None,
        chunks_in_cache=metadata.chunks_added if metadata else 0,
        sources=sources,
    )


def check_embedding_compatibility(index: KnowledgeIndex, gateway: EmbeddingGateway) -> None:
    """Raise ``EmbeddingMismatchError`` if *gateway* vectors cannot join *index*.

    Only curated chunks are compared, since ingestion replaces crawled ones.
    When curated chunks are stored under the same model name, one short text
    is embedded to compare dimensions.

    Raises:
        EmbeddingMismatchError: The stored model or dimension differs.
        EmbeddingError: The dimension check request failed.
    """
    kept = [c for c in index.chunks if not c.is_crawled]
    if not kept:
        return
    if index.embedding_model and index.embedding_model != gateway.model:
        raise EmbeddingMismatchError(
            f"Embedding model mismatch: the knowledge base uses '{index.embedding_model}' "
            f"but embedding.model is '{gateway.model}'. {REINDEX_HINT}"
        )
    stored_dims = len(kept[0].embedding)
    new_dims = len(gateway.embed_one(DIMENSION_CHECK_TEXT))
    if new_dims != stored_dims:
        raise EmbeddingMismatchError(
            f"Embedding dimension mismatch: stored chunks have {stored_dims} dimensions "
            f"but '{gateway.model}' returns {new_dims}. {REINDEX_HINT}"
        )
