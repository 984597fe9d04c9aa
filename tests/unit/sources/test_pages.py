"""Tests for the provider payload → PageRecord adapter."""

from __future__ import annotations

from sentinel.sources.pages import UNTITLED, parse_pages
from sentinel.store.models import PageRecord

_FALLBACK = "https://example.com/"


def test_results_list() -> None:
    payload = {
        "results": [
            {"url": "https://example.com/a", "title": "A", "raw_content": "Raw A", "content": "Snippet A"},
            {"url": "https://example.com/b", "title": "B", "content": "Snippet B"},
        ]
    }
    assert parse_pages(payload, _FALLBACK) == [
        PageRecord("https://example.com/a", "A", "Raw A"),
        PageRecord("https://example.com/b", "B", "Snippet B"),
    ]


def test_pages_and_data_keys() -> None:
    assert parse_pages({"pages": [{"text": "T"}]}, _FALLBACK) == [PageRecord(_FALLBACK, UNTITLED, "T")]
    assert parse_pages({"data": [{"markdown": "M"}]}, _FALLBACK) == [PageRecord(_FALLBACK, UNTITLED, "M")]


def test_text_field_fallback_order() -> None:
    item = {"body": "Body", "markdown": "Markdown", "text": "Text"}
    assert parse_pages([item], _FALLBACK)[0].text == "Text"


def test_blank_preferred_field_falls_through() -> None:
    item = {"raw_content": "   ", "content": "Content"}
    assert parse_pages([item], _FALLBACK)[0].text == "Content"


def test_html_field_converted() -> None:
    item = {"html": "<p>Patch <b>now</b>.</p><script>x()</script>"}
    text = parse_pages([item], _FALLBACK)[0].text
    assert "Patch" in text
    assert "x()" not in text


def test_url_and_title_fallbacks() -> None:
    page = parse_pages([{"link": "https://example.com/l", "name": "Named", "text": "T"}], _FALLBACK)[0]
    assert (page.url, page.title) == ("https://example.com/l", "Named")


def test_item_without_text_keeps_empty_text() -> None:
    assert parse_pages([{"url": "https://example.com/x"}], _FALLBACK) == [
        PageRecord("https://example.com/x", UNTITLED, "")
    ]


def test_string_items_and_garbage() -> None:
    assert parse_pages(["plain", 42, None], _FALLBACK) == [PageRecord(_FALLBACK, UNTITLED, "plain")]


def test_single_top_level_page() -> None:
    payload = {"url": "https://example.com/only", "title": "Only", "content": "Hello"}
    assert parse_pages(payload, _FALLBACK) == [PageRecord("https://example.com/only", "Only", "Hello")]


def test_top_level_without_text_is_empty() -> None:
    assert parse_pages({"status": "ok"}, _FALLBACK) == []
    assert parse_pages(None, _FALLBACK) == []
    assert parse_pages("unexpected", _FALLBACK) == []
