"""Domain models for the knowledge store and ingestion results."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

CRAWLED_TAG = "crawled"
WEB_TAG = "web"
FORMAT_VERSION = 1
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    """Serialise *ts* as an ISO-8601 UTC string with a trailing ``Z``."""
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def from_iso(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class Priority(str, enum.Enum):
    """Editorial importance of a document; scales retrieval similarity."""

    CRITICAL = "critical"
    HIGH = "high"
    STANDARD = "standard"
    REFERENCE = "reference"

    @property
    def weight(self) -> float:
        return _PRIORITY_WEIGHTS[self]

    @classmethod
    def parse(cls, value: str | Priority | None) -> Priority:
        """Return the Priority for *value*; ``None`` maps to STANDARD."""
        if value is None or value == "":
            return cls.STANDARD
        if isinstance(value, Priority):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown priority '{value}'. "
                f"Expected one of: {', '.join(p.value for p in cls)}"
            ) from None


_PRIORITY_WEIGHTS: dict[Priority, float] = {
    Priority.CRITICAL: 1.30,
    Priority.HIGH: 1.15,
    Priority.STANDARD: 1.00,
    Priority.REFERENCE: 0.85,
}


class Origin(str, enum.Enum):
    """Content category. Crawled content always ranks ahead of curated."""

    CRAWLED = "crawled"
    CURATED = "curated"

    @classmethod
    def from_tags(cls, tags: frozenset[str] | set[str] | list[str]) -> Origin:
        return cls.CRAWLED if CRAWLED_TAG in tags else cls.CURATED


# ---------------------------------------------------------------------------
# Source / page records (external collaborator shapes)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceRecord:
    """A configured website to crawl."""

    id: str
    name: str
    url: str
    active: bool = True
    order: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValueError(f"Source '{self.name or self.id}' has no url.")
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(
                f"Source '{self.name or self.id}' url must start with http:// or https://, "
                f"got '{self.url}'."
            )
        if not isinstance(self.order, int) or isinstance(self.order, bool):
            raise ValueError(f"Source '{self.name or self.id}' order must be an integer.")


@dataclass(frozen=True)
class PageRecord:
    """One extracted page returned by a crawl provider."""

    url: str
    title: str
    text: str


# ---------------------------------------------------------------------------
# Documents and chunks
# ---------------------------------------------------------------------------


def slugify_url(url: str) -> str:
    """Derive a slug from *url*: every non-alphanumeric character becomes ``-``."""
    return re.sub(r"[^a-z0-9]", "-", url, flags=re.IGNORECASE).lower()


@dataclass(frozen=True)
class Document:
    """A unit of content to be indexed. Never mutated after creation."""

    id: str
    title: str
    slug: str
    content: str
    tags: frozenset[str] = frozenset()
    language: str | None = None
    priority: Priority = Priority.STANDARD
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def origin(self) -> Origin:
        return Origin.from_tags(self.tags)


@dataclass
class Chunk:
    """The atomic retrievable unit: passage text plus its embedding."""

    id: str
    document_id: str
    document_title: str
    slug: str
    chunk_index: int
    content: str
    embedding: list[float]
    priority: Priority = Priority.STANDARD
    language: str | None = None
    tags: frozenset[str] = frozenset()

    @property
    def origin(self) -> Origin:
        return Origin.from_tags(self.tags)

    @property
    def is_crawled(self) -> bool:
        return self.origin is Origin.CRAWLED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "documentId": self.document_id,
            "documentTitle": self.document_title,
            "slug": self.slug,
            "chunkIndex": self.chunk_index,
            "content": self.content,
            "priority": self.priority.value,
            "tags": sorted(self.tags),
            "embedding": list(self.embedding),
        }
        if self.language is not None:
            data["language"] = self.language
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        return cls(
            id=str(data["id"]),
            document_id=str(data["documentId"]),
            document_title=str(data.get("documentTitle", "")),
            slug=str(data.get("slug", "")),
            chunk_index=int(data["chunkIndex"]),
            content=str(data["content"]),
            embedding=[float(v) for v in data.get("embedding", [])],
            priority=Priority.parse(data.get("priority")),
            language=data.get("language"),
            tags=frozenset(data.get("tags") or ()),
        )


@dataclass
class KnowledgeIndex:
    """The persisted aggregate of all indexed chunks."""

    embedding_model: str
    chunks: list[Chunk] = field(default_factory=list)
    generated_at: datetime = EPOCH
    format_version: int = FORMAT_VERSION

    def duplicate_ids(self) -> list[str]:
        seen: set[str] = set()
        dupes: list[str] = []
        for chunk in self.chunks:
            if chunk.id in seen:
                dupes.append(chunk.id)
            seen.add(chunk.id)
        return dupes

    def to_dict(self) -> dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "generatedAt": to_iso(self.generated_at),
            "embeddingModel": self.embedding_model,
            "chunks": [c.to_dict() for c in self.chunks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KnowledgeIndex:
        return cls(
            format_version=int(data.get("formatVersion", FORMAT_VERSION)),
            generated_at=from_iso(data["generatedAt"]) if data.get("generatedAt") else EPOCH,
            embedding_model=str(data.get("embeddingModel", "")),
            chunks=[Chunk.from_dict(c) for c in data.get("chunks", [])],
        )


def empty_index(embedding_model: str) -> KnowledgeIndex:
    """A well-formed index with no chunks, generated at the Unix epoch."""
    return KnowledgeIndex(embedding_model=embedding_model, chunks=[], generated_at=EPOCH)


@dataclass(frozen=True)
class CacheMetadata:
    """Freshness record of the last completed ingestion run."""

    last_run_at: datetime
    sources_signature: str
    chunks_added: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastRunAt": to_iso(self.last_run_at),
            "sourcesSignature": self.sources_signature,
            "chunksAdded": self.chunks_added,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheMetadata:
        return cls(
            last_run_at=from_iso(data["lastRunAt"]),
            sources_signature=str(data["sourcesSignature"]),
            chunks_added=int(data.get("chunksAdded", 0)),
        )


# ---------------------------------------------------------------------------
# Ingestion results
# ---------------------------------------------------------------------------


@dataclass
class SourceResult:
    source: str
    url: str
    success: bool
    chunks_added: int = 0
    error: str | None = None


@dataclass
class IngestResult:
    """Aggregate outcome of one ``Ingestor.ingest()`` call."""

    total_chunks_added: int = 0
    per_source: list[SourceResult] = field(default_factory=list)
    cached: bool = False
    cache_age_minutes: int | None = None
    last_run_at: datetime | None = None
    removed_chunks: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None
