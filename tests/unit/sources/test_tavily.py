"""Tests for the Tavily crawl provider (HTTP layer patched out)."""

from __future__ import annotations

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from sentinel.errors import ConfigurationError, CrawlError
from sentinel.sources.tavily import TavilyProvider, source_domain
from sentinel.store.models import PageRecord

_URL = "https://docs.example.com/"


def _provider(**kwargs) -> TavilyProvider:
    return TavilyProvider(api_key="tvly-test", **kwargs)


# ---------------------------------------------------------------------------
# Search → crawl fallback
# ---------------------------------------------------------------------------


def test_source_domain() -> None:
    assert source_domain("https://docs.example.com/") == "docs.example.com"
    assert source_domain("http://example.com/path/") == "example.com/path"


def test_search_results_returned_without_crawl() -> None:
    provider = _provider(max_results=7)
    payload = {"results": [{"url": _URL + "a", "title": "A", "raw_content": "Alpha text"}]}
    with patch.object(provider, "_post", return_value=payload) as mock_post:
        pages = provider.fetch_pages(_URL)

    assert pages == [PageRecord(_URL + "a", "A", "Alpha text")]
    mock_post.assert_called_once()
    path, body = mock_post.call_args.args
    assert path == "/search"
    assert body["query"] == "site:docs.example.com"
    assert body["include_domains"] == ["docs.example.com"]
    assert body["search_depth"] == "advanced"
    assert body["include_raw_content"] is True
    assert body["max_results"] == 7


def test_empty_search_falls_back_to_crawl() -> None:
    provider = _provider(max_depth=2, max_pages=10)
    responses = [{"results": []}, {"results": [{"url": _URL, "content": "Crawled"}]}]
    with patch.object(provider, "_post", side_effect=responses) as mock_post:
        pages = provider.fetch_pages(_URL)

    assert [p.text for p in pages] == ["Crawled"]
    path, body = mock_post.call_args_list[1].args
    assert path == "/crawl"
    assert body == {"url": _URL, "max_depth": 2, "limit": 10}


def test_failed_search_falls_back_to_crawl() -> None:
    provider = _provider()
    responses = [CrawlError("search down"), {"pages": [{"text": "From crawl"}]}]
    with patch.object(provider, "_post", side_effect=responses):
        pages = provider.fetch_pages(_URL)
    assert [p.text for p in pages] == ["From crawl"]


def test_crawl_failure_raises_with_both_errors() -> None:
    provider = _provider()
    with patch.object(provider, "_post", side_effect=[CrawlError("search down"), CrawlError("crawl down")]):
        with pytest.raises(CrawlError, match="crawl down.*search also failed: search down"):
            provider.fetch_pages(_URL)


def test_crawl_payload_error_raises() -> None:
    provider = _provider()
    with patch.object(provider, "_post", side_effect=[{"results": []}, {"error": "quota"}]):
        with pytest.raises(CrawlError, match="quota"):
            provider.fetch_pages(_URL)


def test_zero_pages_is_empty_list() -> None:
    provider = _provider()
    with patch.object(provider, "_post", side_effect=[{"results": []}, {"results": []}]):
        assert provider.fetch_pages(_URL) == []


# ---------------------------------------------------------------------------
# validate()
# ---------------------------------------------------------------------------


def test_missing_api_key(monkeypatch) -> None:
    monkeypatch.delenv("TAVILY_API_KEY", raising=False)
    provider = TavilyProvider()
    with pytest.raises(ConfigurationError, match="TAVILY_API_KEY"):
        provider.validate()
    with pytest.raises(ConfigurationError):
        provider.fetch_pages(_URL)


def test_api_key_read_from_env(monkeypatch) -> None:
    monkeypatch.setenv("TAVILY_API_KEY", "tvly-env")
    TavilyProvider().validate()


# ---------------------------------------------------------------------------
# _post
# ---------------------------------------------------------------------------


def _urlopen_returning(body: bytes) -> MagicMock:
    response = MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    return MagicMock(return_value=response)


def test_post_sends_bearer_and_timeout() -> None:
    provider = _provider(timeout=12.5)
    opener = _urlopen_returning(json.dumps({"results": []}).encode())
    with patch("sentinel.sources.tavily.urllib.request.urlopen", opener):
        assert provider._post("/search", {"q": 1}) == {"results": []}

    request = opener.call_args.args[0]
    assert request.full_url == "https://api.tavily.com/search"
    assert request.get_header("Authorization") == "Bearer tvly-test"
    assert json.loads(request.data) == {"q": 1}
    assert opener.call_args.kwargs["timeout"] == 12.5


def test_post_http_error_becomes_crawl_error() -> None:
    provider = _provider()
    err = urllib.error.HTTPError(
        "https://api.tavily.com/crawl", 502, "Bad Gateway", {}, io.BytesIO(b"upstream failed")
    )
    with patch("sentinel.sources.tavily.urllib.request.urlopen", side_effect=err):
        with pytest.raises(CrawlError, match="status 502: upstream failed"):
            provider._post("/crawl", {})


def test_post_timeout_becomes_crawl_error() -> None:
    provider = _provider()
    with patch("sentinel.sources.tavily.urllib.request.urlopen", side_effect=TimeoutError("timed out")):
        with pytest.raises(CrawlError, match="timed out"):
            provider._post("/search", {})


def test_post_invalid_json() -> None:
    provider = _provider()
    with patch("sentinel.sources.tavily.urllib.request.urlopen", _urlopen_returning(b"<html>")):
        with pytest.raises(CrawlError, match="invalid JSON"):
            provider._post("/search", {})
