"""Embedding gateway — batched LiteLLM embeddings with order preservation.

Contract:
- ``embed_batch(texts)[i]`` is the vector for ``texts[i]``. Responses are
  re-ordered by their ``index`` field because providers are not required to
  return items in request order.
- Any failure fails the whole batch with ``EmbeddingError``; callers never
  see a partial result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import litellm

from sentinel.errors import EmbeddingError
from sentinel.rag.llm_client import validate_api_key


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation."""

    model: str = "openai/text-embedding-3-large"
    batch_size: int = 256
    num_retries: int = 3


class EmbeddingGateway:
    """Convert text into fixed-length vectors via ``litellm.embedding()``.

    Args:
        config: Embedding configuration (model, batch_size, num_retries).
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self._config = config or EmbeddingConfig()
        if self._config.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    @property
    def model(self) -> str:
        return self._config.model

    def validate(self) -> None:
        """Raise ConfigurationError if the provider API key is missing."""
        validate_api_key(self._config.model)

    def embed_one(self, text: str) -> list[float]:
        """Embed a single query string."""
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, preserving order. Empty input makes no API call."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        size = self._config.batch_size
        for start in range(0, len(texts), size):
            vectors.extend(self._embed_slice(texts[start : start + size]))

        dims = {len(v) for v in vectors}
        if len(dims) != 1 or 0 in dims:
            raise EmbeddingError(
                f"Embedding model '{self._config.model}' returned vectors of "
                f"inconsistent dimensionality: {sorted(dims)}"
            )
        return vectors

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _embed_slice(self, texts: list[str]) -> list[list[float]]:
        try:
            response = litellm.embedding(
                model=self._config.model,
                input=texts,
                num_retries=self._config.num_retries,
            )
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding request to '{self._config.model}' failed: {exc}"
            ) from exc

        items = list(response.data or [])
        if len(items) != len(texts):
            raise EmbeddingError(
                f"Embedding model '{self._config.model}' returned {len(items)} vectors "
                f"for {len(texts)} inputs."
            )

        try:
            if all(_field(item, "index") is not None for item in items):
                items.sort(key=lambda item: int(_field(item, "index")))
            return [[float(v) for v in _field(item, "embedding")] for item in items]
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(
                f"Malformed embedding response from '{self._config.model}': {exc}"
            ) from exc


def _field(item: Any, name: str) -> Any:
    """Read *name* from a dict-like or attribute-style response item."""
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)
