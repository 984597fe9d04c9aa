"""Build the grounded system prompt for an answer.

Retrieval order for a question:
  1. Crawled-only retrieval. Any hit → mode ``crawled``: the excerpts are
     the exclusive source for the answer.
  2. General retrieval over the whole index → mode ``general``: excerpts
     are offered as secondary material with title and priority.
  3. Nothing found → mode ``none``: the model may answer from general
     knowledge but must say so first.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sentinel.rag.retriever import CRAWLED_TOP_K, DEFAULT_TOP_K, Retriever
from sentinel.store.models import Chunk

DEFAULT_SYSTEM_PROMPT = """\
You are Sentinel, a calm and professional cybersecurity guide.
Explain complex concepts clearly, keep recommendations actionable, and focus on
web application and infrastructure hardening.
When asked for steps, provide concise checklists.
If a question is outside cybersecurity, answer briefly before steering the user
back to security topics.

When crawled content is provided it is your primary and exclusive source.
Never mention the source website URL, domain name or other identifying details;
speak about crawled content as internal knowledge."""

GENERAL_KNOWLEDGE_DISCLAIMER = (
    "I couldn't find specific information about this in the available content. "
    "Based on general knowledge..."
)

_CRAWLED_INSTRUCTIONS = f"""\
CRAWLED CONTENT IS THE PRIMARY SOURCE

You have been given content crawled from the website. Use it as the only
source for answering the user's question.

RULES:
1. Search the crawled content before using any general knowledge.
2. If it holds any related information, even partial, answer from it alone.
3. Do not offer alternative interpretations or general knowledge alongside it.
4. Do not mention where the content came from.
5. Only if it has no relevant information at all, start with: "{GENERAL_KNOWLEDGE_DISCLAIMER}"

CRAWLED CONTENT:
{{context}}

The crawled content above is your primary source."""

_GENERAL_INSTRUCTIONS = f"""\
SECONDARY SOURCE - GENERAL KNOWLEDGE:
The following knowledge base excerpts may be relevant. Use them if they help
answer the question. Do not mention the knowledge base or cite the excerpts.

{{context}}

If this content is not sufficient you may use general knowledge, but first
state: "{GENERAL_KNOWLEDGE_DISCLAIMER}\""""

_NO_CONTENT_INSTRUCTIONS = (
    "IMPORTANT: No relevant content was found in the knowledge base. You may use "
    f'general knowledge to answer, but you must first state: "{GENERAL_KNOWLEDGE_DISCLAIMER}"'
)


@dataclass
class PromptContext:
    """The augmented system prompt plus what went into it.

    Attributes:
        system_prompt: Base prompt with retrieval instructions appended.
        mode: ``crawled``, ``general`` or ``none``.
        documents: Unique (title, slug) pairs of the chunks used, first-seen order.
        chunks: The chunks used.
    """

    system_prompt: str
    mode: str
    documents: list[tuple[str, str]] = field(default_factory=list)
    chunks: list[Chunk] = field(default_factory=list)


def format_context(chunks: list[Chunk]) -> str:
    """Number chunk contents from 1 and separate them by a blank line."""
    return "\n\n".join(f"[Chunk {i}]\n{chunk.content}" for i, chunk in enumerate(chunks, start=1))


def _format_excerpts(chunks: list[Chunk]) -> str:
    return "\n\n".join(
        f"Title: {c.document_title}\nPriority: {c.priority.value}\nExcerpt: {c.content}"
        for c in chunks
    )


def _unique_documents(chunks: list[Chunk]) -> list[tuple[str, str]]:
    seen: dict[str, str] = {}
    for chunk in chunks:
        seen.setdefault(chunk.slug, chunk.document_title)
    return [(title, slug) for slug, title in seen.items()]


def build_system_prompt(
    base: str,
    crawled: list[Chunk],
    general: list[Chunk],
) -> PromptContext:
    """Append the retrieval instructions matching what was found."""
    if crawled:
        instructions = _CRAWLED_INSTRUCTIONS.format(context=format_context(crawled))
        return PromptContext(
            system_prompt=f"{base}\n\n{instructions}",
            mode="crawled",
            documents=_unique_documents(crawled),
            chunks=crawled,
        )
    if general:
        instructions = _GENERAL_INSTRUCTIONS.format(context=_format_excerpts(general))
        return PromptContext(
            system_prompt=f"{base}\n\n{instructions}",
            mode="general",
            documents=_unique_documents(general),
            chunks=general,
        )
    return PromptContext(system_prompt=f"{base}\n\n{_NO_CONTENT_INSTRUCTIONS}", mode="none")


def answer_context(
    query: str,
    retriever: Retriever,
    base_prompt: str | None = None,
    top_k: int = DEFAULT_TOP_K,
    crawled_top_k: int = CRAWLED_TOP_K,
) -> PromptContext:
    """Retrieve for *query* and build the system prompt for the answer.

    General retrieval only runs when crawled-only retrieval found nothing.
    """
    base = base_prompt or DEFAULT_SYSTEM_PROMPT
    crawled = retriever.retrieve_crawled_only(query, crawled_top_k)
    general = [] if crawled else retriever.retrieve(query, top_k)
    return build_system_prompt(base, crawled, general)
