"""Brute-force cosine retrieval over the JSON knowledge index.

Scoring:
  score = cosine(query, chunk) * priority_weight * (1 + 0.2 * keyword_matches)

Two modes:
  retrieve               all chunks, score > 0, crawled chunks ahead of
                         curated ones (each group by score), top_k = 4
  retrieve_crawled_only  crawled chunks only, score > 0.1, ordered by
                         keyword matches then score, top_k = 15
"""

from __future__ import annotations

import math
import string
from dataclasses import dataclass

from sentinel.ingest.embedding import EmbeddingGateway
from sentinel.store.knowledge_store import KnowledgeStore
from sentinel.store.models import Chunk, Priority

DEFAULT_TOP_K = 4
CRAWLED_TOP_K = 15
GENERAL_MIN_SCORE = 0.0
CRAWLED_MIN_SCORE = 0.1
KEYWORD_BOOST = 0.2


@dataclass
class ScoredChunk:
    """A retrieved chunk with its composite score.

    Attributes:
        chunk: The stored chunk.
        score: similarity * priority weight * keyword boost.
        similarity: Raw cosine similarity to the query.
        keyword_matches: Number of query keywords found in the chunk text.
    """

    chunk: Chunk
    score: float
    similarity: float
    keyword_matches: int


# ------------------------------------------------------------------
# Scoring primitives
# ------------------------------------------------------------------


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of *a* and *b*; 0 when either vector has zero magnitude.

    Positions missing from the shorter vector count as 0.
    """
    mag_a = math.sqrt(sum(x * x for x in a))
    mag_b = math.sqrt(sum(x * x for x in b))
    if mag_a == 0 or mag_b == 0:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    return dot / (mag_a * mag_b)


def query_keywords(query: str) -> list[str]:
    """Whitespace-separated lowercase words of *query* longer than two characters.

    Leading and trailing punctuation is stripped; inner hyphens and dots stay,
    so "x-frame-options" is one keyword.
    """
    words = (w.strip(string.punctuation) for w in query.lower().split())
    return [w for w in words if len(w) > 2]


def keyword_matches(keywords: list[str], content: str) -> int:
    lowered = content.lower()
    return sum(1 for word in keywords if word in lowered)


def score(similarity: float, priority: Priority, keywords: list[str], content: str) -> float:
    matches = keyword_matches(keywords, content)
    return similarity * priority.weight * (1 + KEYWORD_BOOST * matches)


# ------------------------------------------------------------------
# Retriever
# ------------------------------------------------------------------


class Retriever:
    """Rank stored chunks against a query.

    Query embedding failures propagate as ``EmbeddingError``.
    """

    def __init__(self, store: KnowledgeStore, gateway: EmbeddingGateway) -> None:
        self.store = store
        self.gateway = gateway

    def retrieve(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[Chunk]:
        return [s.chunk for s in self.retrieve_scored(query, top_k)]

    def retrieve_scored(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[ScoredChunk]:
        chunks = self.store.load().chunks
        if not chunks:
            return []

        scored = [s for s in self._score_all(query, chunks) if s.score > GENERAL_MIN_SCORE]
        scored.sort(key=lambda s: s.score, reverse=True)
        crawled = [s for s in scored if s.chunk.is_crawled]
        others = [s for s in scored if not s.chunk.is_crawled]
        return (crawled + others)[:top_k]

    def retrieve_crawled_only(self, query: str, top_k: int = CRAWLED_TOP_K) -> list[Chunk]:
        return [s.chunk for s in self.retrieve_crawled_only_scored(query, top_k)]

    def retrieve_crawled_only_scored(
        self, query: str, top_k: int = CRAWLED_TOP_K
    ) -> list[ScoredChunk]:
        """Crawled chunks only. Empty list (no embedding call) if none are stored."""
        crawled = [c for c in self.store.load().chunks if c.is_crawled]
        if not crawled:
            return []

        scored = [s for s in self._score_all(query, crawled) if s.score > CRAWLED_MIN_SCORE]
        scored.sort(key=lambda s: (s.keyword_matches, s.score), reverse=True)
        return scored[:top_k]

    def _score_all(self, query: str, chunks: list[Chunk]) -> list[ScoredChunk]:
        query_vector = self.gateway.embed_one(query)
        keywords = query_keywords(query)
        results: list[ScoredChunk] = []
        for chunk in chunks:
            similarity = cosine_similarity(query_vector, chunk.embedding)
            results.append(
                ScoredChunk(
                    chunk=chunk,
                    score=score(similarity, chunk.priority, keywords, chunk.content),
                    similarity=similarity,
                    keyword_matches=keyword_matches(keywords, chunk.content),
                )
            )
        return results
