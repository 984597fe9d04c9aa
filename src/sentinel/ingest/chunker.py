"""Sentence-window chunker with overlap.

Documents are split into sentence-like units, then greedily packed into
token-bounded chunks. Each new chunk is seeded with the trailing sentences
of the previous one so that no passage starts mid-thought.

Token counting uses a 4-chars-per-token approximation; no external
tokenizer dependency is required.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from sentinel.store.models import Document

DEFAULT_MAX_TOKENS = 500
DEFAULT_OVERLAP_RATIO = 0.15

# Break after . ! ? plus whitespace, only when the next sentence starts with
# an uppercase letter or digit. "e.g. the" stays in one unit; "Dr. Smith"
# is split. That is a known limitation of the heuristic.
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9])")


@dataclass(frozen=True)
class TextChunk:
    content: str
    index: int


def estimate_tokens(text: str) -> int:
    """Approximate token count: ceil(characters / 4)."""
    return math.ceil(len(text) / 4)


def split_sentences(text: str) -> list[str]:
    """Split *text* into stripped, non-empty sentence-like units."""
    text = text.replace("\r\n", "\n")
    return [part.strip() for part in _SENTENCE_BOUNDARY_RE.split(text) if part.strip()]


class SentenceChunker:
    """Pack sentences into chunks of at most ``max_tokens`` estimated tokens.

    A single sentence longer than the budget becomes its own oversized
    chunk; sentences are never cut.

    Args:
        max_tokens: Token budget per chunk (default 500).
        overlap_ratio: Fraction of a closed chunk's sentences carried into
            the next chunk, rounded up, minimum one sentence.
    """

    def __init__(
        self,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        overlap_ratio: float = DEFAULT_OVERLAP_RATIO,
    ) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")
        if not 0.0 <= overlap_ratio < 1.0:
            raise ValueError("overlap_ratio must be in [0.0, 1.0)")
        self.max_tokens = max_tokens
        self.overlap_ratio = overlap_ratio

    def chunk(self, document: Document) -> list[TextChunk]:
        return self.chunk_text(document.content)

    def chunk_text(self, text: str) -> list[TextChunk]:
        sentences = split_sentences(text)
        if not sentences:
            return []

        contents: list[str] = []
        current: list[str] = []
        current_tokens = 0

        for sentence in sentences:
            tokens = estimate_tokens(sentence)
            if current and current_tokens + tokens > self.max_tokens:
                contents.append(" ".join(current))
                current = current[-self._overlap_size(len(current)):]
                current_tokens = estimate_tokens(" ".join(current))
            current.append(sentence)
            current_tokens += tokens

        if current:
            contents.append(" ".join(current))

        return [TextChunk(content=c, index=i) for i, c in enumerate(contents)]

    def _overlap_size(self, unit_count: int) -> int:
        return max(1, math.ceil(unit_count * self.overlap_ratio))


def chunk_text(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> list[TextChunk]:
    """Chunk *text* with the default overlap ratio."""
    return SentenceChunker(max_tokens=max_tokens).chunk_text(text)
