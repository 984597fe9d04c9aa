"""Tavily crawl provider: site search first, crawl API as fallback.

Per source URL:
  1. POST /search with a ``site:`` query restricted to the source domain,
     asking for raw page content.
  2. If search fails or returns no results, POST /crawl on the URL.
  3. If the crawl request fails too, raise ``CrawlError``.

Every request carries ``timeout`` seconds as its deadline.
"""

from __future__ import annotations

import json
import os
import re
import urllib.error
import urllib.request
from typing import Any

from sentinel.errors import ConfigurationError, CrawlError
from sentinel.sources.base import CrawlProvider
from sentinel.sources.pages import parse_pages
from sentinel.store.models import PageRecord

API_BASE = "https://api.tavily.com"
API_KEY_ENV = "TAVILY_API_KEY"
_USER_AGENT = "sentinel/0.1"
_MAX_ERROR_BODY = 500


def source_domain(url: str) -> str:
    """``https://docs.example.com/`` → ``docs.example.com``."""
    return re.sub(r"^https?://", "", url).rstrip("/")


class TavilyProvider(CrawlProvider):
    """Fetch pages for a source through the Tavily search and crawl APIs.

    Args:
        api_key: Tavily key; defaults to the ``TAVILY_API_KEY`` env var.
        timeout: Per-request deadline in seconds.
        max_results: Search results requested.
        max_depth: Link depth for the crawl fallback.
        max_pages: Page cap for the crawl fallback.
    """

    name = "tavily"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 30.0,
        max_results: int = 20,
        max_depth: int = 5,
        max_pages: int = 100,
        api_base: str = API_BASE,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV, "")
        self.timeout = timeout
        self.max_results = max_results
        self.max_depth = max_depth
        self.max_pages = max_pages
        self._api_base = api_base.rstrip("/")

    def validate(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                f"{API_KEY_ENV} is not configured. Add it to your environment variables."
            )

    def fetch_pages(self, url: str) -> list[PageRecord]:
        self.validate()
        domain = source_domain(url)

        search_error: CrawlError | None = None
        try:
            payload = self._post(
                "/search",
                {
                    "query": f"site:{domain}",
                    "max_results": self.max_results,
                    "include_domains": [domain],
                    "search_depth": "advanced",
                    "include_raw_content": True,
                },
            )
            pages = parse_pages(payload.get("results") or [], url)
            if pages:
                return pages
        except CrawlError as exc:
            search_error = exc

        try:
            payload = self._post(
                "/crawl",
                {"url": url, "max_depth": self.max_depth, "limit": self.max_pages},
            )
        except CrawlError as exc:
            if search_error is not None:
                raise CrawlError(f"{exc} (search also failed: {search_error})") from exc
            raise

        if payload.get("error"):
            raise CrawlError(f"Tavily crawl failed: {payload['error']}")
        return parse_pages(payload, url)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST JSON to the Tavily API and return the decoded response object."""
        endpoint = f"{self._api_base}{path}"
        request = urllib.request.Request(
            endpoint,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "User-Agent": _USER_AGENT,
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read()[:_MAX_ERROR_BODY].decode("utf-8", errors="replace")
            raise CrawlError(
                f"Tavily {path.lstrip('/')} failed with status {exc.code}: {detail}"
            ) from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise CrawlError(f"Tavily {path.lstrip('/')} request failed: {exc}") from exc

        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise CrawlError(f"Tavily {path.lstrip('/')} returned invalid JSON.") from exc
        if not isinstance(payload, dict):
            raise CrawlError(f"Tavily {path.lstrip('/')} returned an unexpected payload.")
        return payload
