"""Normalise provider payloads into strict ``PageRecord`` lists.

Crawl and search APIs return pages under several different shapes and
field names. All of that shape-sniffing lives here; the pipeline only ever
sees ``PageRecord(url, title, text)``.

Fallback order:
  page list  results > pages > data > (the payload itself, if it has text)
  text       raw_content > content > text > body > markdown > html
  url        url > link > fallback_url
  title      title > name > "Untitled Page"
"""

from __future__ import annotations

from typing import Any

from sentinel.ingest.extract import html_to_text
from sentinel.store.models import PageRecord

UNTITLED = "Untitled Page"

_LIST_KEYS = ("results", "pages", "data")
_TEXT_KEYS = ("raw_content", "content", "text", "body", "markdown")
_URL_KEYS = ("url", "link")
_TITLE_KEYS = ("title", "name")


def parse_pages(payload: Any, fallback_url: str) -> list[PageRecord]:
    """Convert a decoded JSON *payload* into page records.

    Items that are neither mappings nor strings are ignored. An item with no
    text in any known field yields a page with empty text; the orchestrator
    decides whether it is long enough to index.
    """
    if payload is None:
        return []
    if isinstance(payload, list):
        return [p for item in payload if (p := parse_page(item, fallback_url)) is not None]
    if not isinstance(payload, dict):
        return []

    for key in _LIST_KEYS:
        items = payload.get(key)
        if isinstance(items, list):
            return parse_pages(items, fallback_url)

    page = parse_page(payload, fallback_url)
    return [page] if page is not None and page.text else []


def parse_page(item: Any, fallback_url: str) -> PageRecord | None:
    """Convert one provider item into a PageRecord (None if unusable)."""
    if isinstance(item, str):
        return PageRecord(url=fallback_url, title=UNTITLED, text=item)
    if not isinstance(item, dict):
        return None
    return PageRecord(
        url=_first_str(item, _URL_KEYS) or fallback_url,
        title=_first_str(item, _TITLE_KEYS) or UNTITLED,
        text=_page_text(item),
    )


def _page_text(item: dict[str, Any]) -> str:
    text = _first_str(item, _TEXT_KEYS)
    if text:
        return text
    html = item.get("html")
    if isinstance(html, str) and html.strip():
        return html_to_text(html)
    return ""


def _first_str(item: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""
