"""Sentinel persistence layer: knowledge index and crawl cache metadata."""

from sentinel.store.cache import CACHE_TTL, CacheGate, sources_signature
from sentinel.store.knowledge_store import DeleteResult, KnowledgeStore, StoreStats
from sentinel.store.models import (
    Chunk,
    Document,
    KnowledgeIndex,
    Origin,
    Priority,
    SourceRecord,
    empty_index,
)

__all__ = [
    "CACHE_TTL",
    "CacheGate",
    "Chunk",
    "DeleteResult",
    "Document",
    "KnowledgeIndex",
    "KnowledgeStore",
    "Origin",
    "Priority",
    "SourceRecord",
    "StoreStats",
    "empty_index",
    "sources_signature",
]
