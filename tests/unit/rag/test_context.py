"""Tests for grounded system prompt construction."""

from __future__ import annotations

from sentinel.rag.context import (
    DEFAULT_SYSTEM_PROMPT,
    GENERAL_KNOWLEDGE_DISCLAIMER,
    answer_context,
    build_system_prompt,
    format_context,
)
from sentinel.store.models import Priority


class StubRetriever:
    """Returns canned results and records which modes were queried."""

    def __init__(self, crawled=None, general=None) -> None:
        self.crawled = crawled or []
        self.general = general or []
        self.calls: list[tuple[str, int]] = []

    def retrieve_crawled_only(self, query: str, top_k: int = 15):
        self.calls.append(("crawled", top_k))
        return list(self.crawled)

    def retrieve(self, query: str, top_k: int = 4):
        self.calls.append(("general", top_k))
        return list(self.general)


# ---------------------------------------------------------------------------
# format_context
# ---------------------------------------------------------------------------


def test_format_context_numbers_chunks(make_chunk) -> None:
    chunks = [make_chunk("a-0", content="First."), make_chunk("b-0", content="Second.")]
    assert format_context(chunks) == "[Chunk 1]\nFirst.\n\n[Chunk 2]\nSecond."


def test_format_context_empty() -> None:
    assert format_context([]) == ""


# ---------------------------------------------------------------------------
# build_system_prompt
# ---------------------------------------------------------------------------


def test_crawled_mode_embeds_chunks_exclusively(make_chunk) -> None:
    crawled = [make_chunk("site-0", content="Rotate keys every 90 days.", tags={"crawled"})]
    ctx = build_system_prompt("BASE", crawled, [make_chunk("cur-0", content="Ignored.")])

    assert ctx.mode == "crawled"
    assert ctx.system_prompt.startswith("BASE\n\n")
    assert "CRAWLED CONTENT:\n[Chunk 1]\nRotate keys every 90 days." in ctx.system_prompt
    assert "Ignored." not in ctx.system_prompt
    assert ctx.chunks == crawled


def test_general_mode_lists_title_and_priority(make_chunk) -> None:
    general = [make_chunk("policy-0", content="MFA everywhere.", priority=Priority.HIGH)]
    ctx = build_system_prompt("BASE", [], general)

    assert ctx.mode == "general"
    assert "Title: Title of policy\nPriority: high\nExcerpt: MFA everywhere." in ctx.system_prompt
    assert GENERAL_KNOWLEDGE_DISCLAIMER in ctx.system_prompt
    assert "{context}" not in ctx.system_prompt


def test_none_mode_requires_disclaimer() -> None:
    ctx = build_system_prompt("BASE", [], [])
    assert ctx.mode == "none"
    assert ctx.documents == []
    assert ctx.chunks == []
    assert f'must first state: "{GENERAL_KNOWLEDGE_DISCLAIMER}"' in ctx.system_prompt


def test_documents_unique_in_first_seen_order(make_chunk) -> None:
    chunks = [
        make_chunk("b-0", tags={"crawled"}),
        make_chunk("a-0", tags={"crawled"}),
        make_chunk("b-1", tags={"crawled"}, document_id="b"),
    ]
    ctx = build_system_prompt("BASE", chunks, [])
    assert ctx.documents == [("Title of b", "b"), ("Title of a", "a")]


# ---------------------------------------------------------------------------
# answer_context
# ---------------------------------------------------------------------------


def test_general_retrieval_skipped_when_crawled_hits(make_chunk) -> None:
    retriever = StubRetriever(crawled=[make_chunk("c-0", tags={"crawled"})])
    ctx = answer_context("q", retriever)
    assert ctx.mode == "crawled"
    assert retriever.calls == [("crawled", 15)]


def test_falls_back_to_general_retrieval(make_chunk) -> None:
    retriever = StubRetriever(general=[make_chunk("g-0")])
    ctx = answer_context("q", retriever, top_k=6, crawled_top_k=3)
    assert ctx.mode == "general"
    assert retriever.calls == [("crawled", 3), ("general", 6)]


def test_default_base_prompt_used() -> None:
    ctx = answer_context("q", StubRetriever())
    assert ctx.system_prompt.startswith(DEFAULT_SYSTEM_PROMPT)


def test_custom_base_prompt() -> None:
    ctx = answer_context("q", StubRetriever(), base_prompt="You audit firewalls.")
    assert ctx.system_prompt.startswith("You audit firewalls.\n\n")
