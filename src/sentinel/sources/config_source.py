"""Source, document and prompt records read from ``sentinel.yaml``.

The project config file plays the role of the content store: it lists the
crawl sources, the curated knowledge documents and the system prompt.
Config is re-read on every call so edits take effect on the next ingest.

sentinel.yaml:
    sources:
      - name: OWASP Cheat Sheets
        url: https://cheatsheetseries.owasp.org/
        order: 0
    documents:
      - id: incident-response
        title: Incident response runbook
        path: docs/incident-response.md
        priority: critical
        tags: [runbook]
    prompt:
      file: prompts/system.md
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sentinel.config import ConfigError, SentinelConfig, load_config
from sentinel.store.models import Priority, SourceRecord


@dataclass(frozen=True)
class DocumentRecord:
    """A curated knowledge document as authored in config.

    Exactly one of ``content`` (inline text) or ``path`` (a local file run
    through the extractor) is normally set; inline content wins.
    """

    id: str
    title: str
    slug: str
    content: str = ""
    path: str | None = None
    tags: frozenset[str] = frozenset()
    language: str | None = None
    priority: Priority = Priority.STANDARD


def parse_source(raw: dict[str, Any], position: int) -> SourceRecord:
    """Build a SourceRecord from a raw config mapping.

    Raises:
        ValueError: If the record is malformed (missing url, bad order, ...).
    """
    url = raw.get("url")
    name = str(raw.get("name") or url or f"source-{position}")
    order = raw.get("order", 0)
    if isinstance(order, float) and order.is_integer():
        order = int(order)
    return SourceRecord(
        id=str(raw.get("id") or f"source-{position}"),
        name=name,
        url=url if isinstance(url, str) else "",
        active=bool(raw.get("active", True)),
        order=order,
    )


def active_sources(records: list[dict[str, Any]]) -> list[SourceRecord]:
    """Active sources ordered ascending by ``order`` (config order on ties)."""
    parsed = [parse_source(raw, i) for i, raw in enumerate(records)]
    return sorted((s for s in parsed if s.active), key=lambda s: s.order)


def parse_document(raw: dict[str, Any], position: int) -> DocumentRecord:
    """Build a DocumentRecord from a raw config mapping.

    Raises:
        ValueError: If the record has no id/title or an unknown priority.
    """
    doc_id = raw.get("id") or raw.get("slug")
    title = raw.get("title")
    if not doc_id or not title:
        raise ValueError(f"Document #{position} needs both 'id' and 'title'.")
    tags = raw.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    return DocumentRecord(
        id=str(doc_id),
        title=str(title),
        slug=str(raw.get("slug") or doc_id),
        content=str(raw.get("content") or ""),
        path=raw.get("path"),
        tags=frozenset(str(t) for t in tags),
        language=raw.get("language"),
        priority=Priority.parse(raw.get("priority") or raw.get("importance")),
    )


class YamlSourceConfig:
    """Read sources, documents and the system prompt from project config.

    Args:
        project_dir: Directory holding ``sentinel.yaml``.
        global_config_path: Override the global config path (for testing).
    """

    def __init__(self, project_dir: Path | None = None, global_config_path: Path | None = None) -> None:
        self.project_dir = project_dir
        self._global_config_path = global_config_path

    def list_active_sources(self) -> list[SourceRecord]:
        """Active sources by ascending order; ``[]`` if config cannot be read."""
        cfg = self._load()
        if cfg is None:
            return []
        return active_sources(cfg.sources)

    def list_documents(self) -> list[DocumentRecord]:
        cfg = self._load()
        if cfg is None:
            return []
        return [parse_document(raw, i) for i, raw in enumerate(cfg.documents)]

    def system_prompt(self) -> str | None:
        """The configured system prompt, or None to use the built-in default."""
        cfg = self._load()
        if cfg is None:
            return None
        if cfg.prompt.file:
            prompt_path = Path(cfg.prompt.file)
            if not prompt_path.is_absolute():
                prompt_path = cfg.base_dir / prompt_path
            try:
                text = prompt_path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                warnings.warn(f"Could not read prompt file '{prompt_path}': {exc}", UserWarning, stacklevel=2)
                text = ""
            if text:
                return text
        if cfg.prompt.system and cfg.prompt.system.strip():
            return cfg.prompt.system.strip()
        return None

    def _load(self) -> SentinelConfig | None:
        try:
            return load_config(self.project_dir, global_config_path=self._global_config_path)
        except (ConfigError, OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Could not read source configuration: {exc}", UserWarning, stacklevel=3)
            return None
