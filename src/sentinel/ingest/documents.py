"""Curated knowledge documents → knowledge index.

``DocumentIndexer.rebuild()`` re-indexes every curated document in one pass.
Crawled chunks already in the store are carried over untouched; all previous
curated chunks are replaced.

Documents that cannot be resolved to text (extraction failure, no content)
are reported as ``IndexIssue``s and skipped rather than failing the rebuild.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sentinel.errors import EmbeddingMismatchError, ExtractionError
from sentinel.ingest.chunker import SentenceChunker
from sentinel.ingest.embedding import EmbeddingGateway
from sentinel.ingest.extract import extract_file
from sentinel.ingest.normalize import normalize
from sentinel.sources.config_source import DocumentRecord
from sentinel.store.knowledge_store import KnowledgeStore
from sentinel.store.models import Chunk, Document, KnowledgeIndex, utcnow

MISSING_CONTENT = "Document is missing content. Provide text or a supported file path."


@dataclass(frozen=True)
class IndexIssue:
    document_id: str
    title: str
    reason: str


@dataclass
class RebuildResult:
    index: KnowledgeIndex
    issues: list[IndexIssue] = field(default_factory=list)

    @property
    def curated_chunks(self) -> int:
        return sum(1 for c in self.index.chunks if not c.is_crawled)


class DocumentIndexer:
    """Chunk, embed and store curated documents.

    Args:
        gateway: Embedding gateway.
        store: Knowledge store to rebuild.
        chunker: Chunker; defaults to ``SentenceChunker()``.
        base_dir: Directory that relative document paths resolve against.
    """

    def __init__(
        self,
        gateway: EmbeddingGateway,
        store: KnowledgeStore,
        chunker: SentenceChunker | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.chunker = chunker or SentenceChunker()
        self.base_dir = base_dir or Path.cwd()

    def rebuild(self, records: list[DocumentRecord]) -> RebuildResult:
        """Replace all curated chunks with a fresh index of *records*.

        Raises:
            EmbeddingError: If the embedding batch fails; the store is untouched.
            EmbeddingMismatchError: If the stored crawled chunks have a
                different dimension than the new vectors; the store is untouched.
        """
        issues: list[IndexIssue] = []
        documents: list[Document] = []
        for record in records:
            try:
                content = self._resolve_content(record)
            except ExtractionError as exc:
                issues.append(
                    IndexIssue(record.id, record.title, f"Failed to extract text from file: {exc}")
                )
                continue
            if not content:
                issues.append(IndexIssue(record.id, record.title, MISSING_CONTENT))
                continue
            documents.append(
                Document(
                    id=record.id,
                    title=record.title,
                    slug=record.slug,
                    content=content,
                    tags=record.tags,
                    language=record.language,
                    priority=record.priority,
                )
            )

        pairs = [(doc, piece) for doc in documents for piece in self.chunker.chunk(doc)]
        vectors = self.gateway.embed_batch([piece.content for _, piece in pairs])
        curated = [
            Chunk(
                id=f"{doc.id}-{piece.index}",
                document_id=doc.id,
                document_title=doc.title,
                slug=doc.slug,
                chunk_index=piece.index,
                content=piece.content,
                embedding=vector,
                priority=doc.priority,
                language=doc.language,
                tags=doc.tags,
            )
            for (doc, piece), vector in zip(pairs, vectors)
        ]

        crawled = [c for c in self.store.load().chunks if c.is_crawled]
        if crawled and curated and len(crawled[0].embedding) != len(curated[0].embedding):
            raise EmbeddingMismatchError(
                f"Crawled chunks have {len(crawled[0].embedding)} dimensions but "
                f"'{self.gateway.model}' returns {len(curated[0].embedding)}. "
                "Run `sentinel clear -y`, then sync again."
            )
        index = KnowledgeIndex(
            embedding_model=self.gateway.model,
            chunks=crawled + curated,
            generated_at=utcnow(),
        )
        self.store.replace_all(index)
        return RebuildResult(index=index, issues=issues)

    def _resolve_content(self, record: DocumentRecord) -> str:
        content = normalize(record.content)
        if content or not record.path:
            return content
        path = Path(record.path)
        if not path.is_absolute():
            path = self.base_dir / path
        return extract_file(path)
