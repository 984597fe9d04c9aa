"""Sentinel source collaborators: config records and crawl providers."""

from sentinel.sources.base import CrawlProvider, SourceConfig
from sentinel.sources.config_source import DocumentRecord, YamlSourceConfig
from sentinel.sources.pages import parse_pages
from sentinel.sources.tavily import TavilyProvider
from sentinel.sources.web import DirectFetchProvider, SsrfError

__all__ = [
    "CrawlProvider",
    "DirectFetchProvider",
    "DocumentRecord",
    "SourceConfig",
    "SsrfError",
    "TavilyProvider",
    "YamlSourceConfig",
    "parse_pages",
]
