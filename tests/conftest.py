"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from sentinel.errors import EmbeddingError
from sentinel.sources.base import CrawlProvider
from sentinel.store.cache import CacheGate
from sentinel.store.knowledge_store import KnowledgeStore
from sentinel.store.models import Chunk, PageRecord, Priority

TEST_MODEL = "test/keyword-embedding"


class KeywordGateway:
    """Deterministic embedding stand-in: one dimension per vocabulary word."""

    VOCAB = (
        "security",
        "patch",
        "systems",
        "passwords",
        "strong",
        "firewall",
        "phishing",
        "encryption",
        "backup",
        "incident",
    )
    model = TEST_MODEL

    def __init__(self, fail_after: int | None = None) -> None:
        self.calls: list[list[str]] = []
        self.validated = False
        self._fail_after = fail_after

    def validate(self) -> None:
        self.validated = True

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if self._fail_after is not None and len(self.calls) >= self._fail_after:
            raise EmbeddingError("quota exceeded")
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]

    def embed_one(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    @classmethod
    def vector(cls, text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(word)) for word in cls.VOCAB]


class StaticCrawler(CrawlProvider):
    """Crawl provider returning canned pages (or raising) per URL."""

    name = "static"

    def __init__(self, pages: dict[str, list[PageRecord] | Exception]) -> None:
        self.pages = pages
        self.fetched: list[str] = []

    def fetch_pages(self, url: str) -> list[PageRecord]:
        self.fetched.append(url)
        outcome = self.pages.get(url, [])
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StaticSources:
    def __init__(self, sources) -> None:
        self.sources = list(sources)
        self.calls = 0

    def list_active_sources(self):
        self.calls += 1
        return list(self.sources)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at an empty tmp location and clear env overrides."""
    global_path = tmp_path / "global-home" / "config.yaml"
    monkeypatch.setattr("sentinel.config._GLOBAL_CONFIG_PATH", global_path)
    for var in (
        "SENTINEL_EMBEDDING_MODEL",
        "SENTINEL_GENERATION_MODEL",
        "SENTINEL_CRAWL_PROVIDER",
        "SENTINEL_STORAGE_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
    return global_path


@pytest.fixture
def store(tmp_path: Path) -> KnowledgeStore:
    return KnowledgeStore(tmp_path / "kb" / "knowledge-base.json", embedding_model=TEST_MODEL)


@pytest.fixture
def cache(tmp_path: Path) -> CacheGate:
    return CacheGate(tmp_path / "kb" / "crawl-cache.json")


@pytest.fixture
def gateway() -> KeywordGateway:
    return KeywordGateway()


@pytest.fixture
def make_chunk():
    """Factory for stored chunks with sensible defaults."""

    def _make(
        chunk_id: str = "doc-0",
        content: str = "Some content.",
        embedding: list[float] | None = None,
        tags: set[str] | frozenset[str] = frozenset(),
        priority: Priority = Priority.STANDARD,
        document_id: str | None = None,
        chunk_index: int = 0,
    ) -> Chunk:
        doc_id = document_id or chunk_id.rsplit("-", 1)[0]
        return Chunk(
            id=chunk_id,
            document_id=doc_id,
            document_title=f"Title of {doc_id}",
            slug=doc_id,
            chunk_index=chunk_index,
            content=content,
            embedding=embedding if embedding is not None else [1.0, 0.0],
            priority=priority,
            tags=frozenset(tags),
        )

    return _make


@pytest.fixture
def crawler_cls() -> type[StaticCrawler]:
    return StaticCrawler


@pytest.fixture
def sources_cls() -> type[StaticSources]:
    return StaticSources


@pytest.fixture
def gateway_cls() -> type[KeywordGateway]:
    return KeywordGateway
