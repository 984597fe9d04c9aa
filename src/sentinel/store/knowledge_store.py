"""File-backed knowledge store: a single JSON document holding every chunk.

Single interface for the four index operations (load / replace_all /
append_chunks / delete_by_tag). Writes go to a temp file in the same
directory and are moved into place with ``os.replace`` so readers never see
a half-written index. Storage errors propagate unchanged; there is no retry
at this layer.

A ``threading.Lock`` serialises read-modify-write sequences on one store
instance. Separate processes writing the same file are not coordinated.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sentinel.store.models import (
    CRAWLED_TAG,
    Chunk,
    KnowledgeIndex,
    empty_index,
    utcnow,
)

INDEX_FILENAME = "knowledge-base.json"


@dataclass(frozen=True)
class DeleteResult:
    removed_count: int


@dataclass(frozen=True)
class StoreStats:
    total: int
    crawled: int
    curated: int
    documents: int
    generated_at: datetime
    embedding_model: str
    dimensions: int | None


class KnowledgeStore:
    """Persist the knowledge index as one JSON file at *path*.

    Args:
        path: Location of ``knowledge-base.json``. The parent directory is
            created on first write.
        embedding_model: Model recorded in a freshly created index.
    """

    def __init__(self, path: Path | str, embedding_model: str) -> None:
        self.path = Path(path)
        self.embedding_model = embedding_model
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self) -> KnowledgeIndex:
        """Return the persisted index, or an empty index if none exists yet."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return empty_index(self.embedding_model)
        return KnowledgeIndex.from_dict(json.loads(raw))

    def stats(self) -> StoreStats:
        index = self.load()
        crawled = sum(1 for c in index.chunks if c.is_crawled)
        dims = len(index.chunks[0].embedding) if index.chunks else None
        return StoreStats(
            total=len(index.chunks),
            crawled=crawled,
            curated=len(index.chunks) - crawled,
            documents=len({c.document_id for c in index.chunks}),
            generated_at=index.generated_at,
            embedding_model=index.embedding_model,
            dimensions=dims,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace_all(self, index: KnowledgeIndex) -> None:
        """Atomically overwrite the persisted index with *index*.

        Raises:
            ValueError: If *index* contains duplicate chunk ids or chunks with
                differing embedding dimensionality.
        """
        with self._lock:
            self._write(index)

    def append_chunks(self, new_chunks: list[Chunk]) -> None:
        """Append *new_chunks* to the persisted index and bump ``generated_at``.

        The index is relabelled with this store's ``embedding_model``.
        """
        with self._lock:
            index = self.load()
            index.chunks = [*index.chunks, *new_chunks]
            index.embedding_model = self.embedding_model
            index.generated_at = utcnow()
            self._write(index)

    def delete_by_tag(self, tag: str = CRAWLED_TAG) -> DeleteResult:
        """Remove every chunk whose tag set contains *tag*."""
        with self._lock:
            index = self.load()
            kept = [c for c in index.chunks if tag not in c.tags]
            removed = len(index.chunks) - len(kept)
            if removed:
                index.chunks = kept
                index.generated_at = utcnow()
                self._write(index)
            return DeleteResult(removed_count=removed)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, index: KnowledgeIndex) -> None:
        dupes = index.duplicate_ids()
        if dupes:
            raise ValueError(
                f"Knowledge index contains duplicate chunk ids: {', '.join(dupes[:5])}"
            )
        _check_dimensions(index.chunks)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(index.to_dict(), indent=2)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _check_dimensions(chunks: list[Chunk]) -> None:
    """Raise ValueError unless all chunk embeddings share one length."""
    dims = {len(c.embedding) for c in chunks}
    if len(dims) > 1:
        raise ValueError(
            f"Knowledge index mixes embedding dimensions {sorted(dims)}. "
            "Re-ingest all sources with a single embedding model."
        )
