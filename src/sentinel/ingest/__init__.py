"""Sentinel ingest pipeline — extraction, normalization, chunking, embedding."""

from sentinel.ingest.chunker import SentenceChunker, TextChunk, chunk_text
from sentinel.ingest.embedding import EmbeddingConfig, EmbeddingGateway
from sentinel.ingest.extract import extract_file, extract_text
from sentinel.ingest.normalize import normalize

__all__ = [
    "EmbeddingConfig",
    "EmbeddingGateway",
    "SentenceChunker",
    "TextChunk",
    "chunk_text",
    "extract_file",
    "extract_text",
    "normalize",
]
