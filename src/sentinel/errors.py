"""Exception hierarchy shared by the ingestion and retrieval pipeline.

Expected failures (a source that cannot be crawled, a batch the embedding
provider rejects) are raised by the collaborator adapters and turned into
data by the orchestrator. Storage ``OSError``s are never wrapped.
"""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for all Sentinel pipeline errors."""


class ConfigurationError(SentinelError):
    """A collaborator is missing credentials or required settings."""


class CrawlError(SentinelError):
    """The crawl/search provider request failed (as opposed to zero results)."""


class EmbeddingError(SentinelError):
    """The embedding provider rejected or mangled an entire batch."""


class ExtractionError(SentinelError):
    """Raw text could not be extracted from a binary or markup payload."""


class ConfigError(ConfigurationError, ValueError):
    """A config file contains an invalid or forbidden value."""


class EmbeddingMismatchError(ConfigurationError):
    """Stored vectors and the configured embedding model are incompatible."""


class CompletionError(SentinelError):
    """The LLM provider failed to produce a completion."""
