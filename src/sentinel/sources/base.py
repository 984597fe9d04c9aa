"""Collaborator interfaces consumed by the ingestion orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from sentinel.store.models import PageRecord, SourceRecord


class SourceConfig(Protocol):
    """Supplies the crawl source list.

    Implementations return active sources ordered ascending by ``order`` and
    return an empty list (never raise) when the backing store is unreachable.
    """

    def list_active_sources(self) -> list[SourceRecord]: ...


class CrawlProvider(ABC):
    """Turn a source URL into page records.

    ``fetch_pages`` returns an empty list when the target simply has no
    extractable content and raises ``CrawlError`` when the request failed.
    """

    name: str = "crawler"

    @abstractmethod
    def fetch_pages(self, url: str) -> list[PageRecord]:
        """Fetch *url* and return zero or more page records."""

    def validate(self) -> None:
        """Raise ConfigurationError if the provider cannot run (e.g. no API key)."""
