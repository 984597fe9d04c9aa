"""Sentinel configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (SENTINEL_EMBEDDING_MODEL, SENTINEL_GENERATION_MODEL,
                             SENTINEL_CRAWL_PROVIDER, SENTINEL_STORAGE_DIR)
  3. Per-project sentinel.yaml
  4. Global ~/.sentinel/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
prompt.file must be a local file path — no URLs (SSRF prevention).
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sentinel.errors import ConfigError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".sentinel"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_NAME: str = "sentinel.yaml"

# Fields that suggest an API key are forbidden in global config.
# Does NOT match legitimate config keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token (suffix)
    r"|^token$"                  # exactly "token" (standalone)
    r"|_secret$"                 # client_secret (suffix)
    r"|^secret$"                 # exactly "secret" (standalone)
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    [
        "embedding",
        "generation",
        "retrieval",
        "chunking",
        "crawl",
        "storage",
        "prompt",
        "sources",
        "documents",
    ]
)

CRAWL_PROVIDERS: frozenset[str] = frozenset(["tavily", "direct"])


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (sentinel.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-large"
    batch_size: int = 256


@dataclass
class GenerationCfg:
    """Answer generation configuration (sentinel.yaml: generation:)."""

    model: str = "openai/gpt-5-mini"
    max_tokens: int = 1200


@dataclass
class RetrievalCfg:
    """Retrieval configuration (sentinel.yaml: retrieval:)."""

    top_k: int = 4
    crawled_top_k: int = 15


@dataclass
class ChunkingCfg:
    """Sentence chunker budget (sentinel.yaml: chunking:)."""

    max_tokens: int = 500
    overlap_ratio: float = 0.15


@dataclass
class CrawlCfg:
    """Crawl provider configuration (sentinel.yaml: crawl:).

    Attributes:
        provider: 'tavily' (search API with crawl fallback) or 'direct'
            (single-page fetch, no API key).
        timeout: Per-request deadline in seconds for provider HTTP calls.
        max_results: Search results requested per source.
        max_depth: Crawl depth for the crawl fallback.
        max_pages: Page cap for the crawl fallback.
        min_content_chars: Pages with this many characters or fewer are skipped.
    """

    provider: str = "tavily"
    timeout: float = 30.0
    max_results: int = 20
    max_depth: int = 5
    max_pages: int = 100
    min_content_chars: int = 20


@dataclass
class StorageCfg:
    """Where the knowledge index and crawl cache live (sentinel.yaml: storage:)."""

    dir: str = ".cache/knowledge"


@dataclass
class PromptCfg:
    """Base system prompt (sentinel.yaml: prompt:).

    Attributes:
        system: Inline system prompt text.
        file: Local path to a file holding the system prompt. URLs are
            rejected to prevent SSRF.
    """

    system: str | None = None
    file: str | None = None


@dataclass
class SentinelConfig:
    """Root configuration object, built by load_config() from merged YAML layers.

    ``sources`` and ``documents`` hold the raw records; they are validated by
    ``sentinel.sources.config_source`` when read.
    """

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    crawl: CrawlCfg = field(default_factory=CrawlCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    prompt: PromptCfg = field(default_factory=PromptCfg)
    sources: list[dict[str, Any]] = field(default_factory=list)
    documents: list[dict[str, Any]] = field(default_factory=list)
    base_dir: Path = field(default_factory=Path.cwd)

    @property
    def storage_dir(self) -> Path:
        """Storage directory, resolved against the project directory."""
        p = Path(self.storage.dir).expanduser()
        return p if p.is_absolute() else self.base_dir / p


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                _scan(item, f"{path}[{i}]")

    _scan(data, "")


def _validate_prompt_path(prompt_file: str) -> None:
    """Raise ConfigError if *prompt_file* is a URL rather than a local path."""
    if prompt_file.startswith(("http://", "https://", "ftp://", "//")):
        raise ConfigError(
            f"prompt.file must be a local file path, not a URL: '{prompt_file}'\n"
            "  URLs are not allowed (SSRF prevention).\n"
            "  Example: prompt.file: prompts/system.md"
        )


def _validate_provider(provider: str) -> None:
    if provider not in CRAWL_PROVIDERS:
        raise ConfigError(
            f"Unknown crawl.provider '{provider}'. "
            f"Expected one of: {', '.join(sorted(CRAWL_PROVIDERS))}"
        )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a YAML mapping.")
    return raw


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any], base_dir: Path) -> SentinelConfig:
    """Build a *SentinelConfig* from a merged raw YAML dict."""
    cfg = SentinelConfig(base_dir=base_dir)

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            crawled_top_k=int(r.get("crawled_top_k", cfg.retrieval.crawled_top_k)),
        )

    if "chunking" in data:
        ch = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            max_tokens=int(ch.get("max_tokens", cfg.chunking.max_tokens)),
            overlap_ratio=float(ch.get("overlap_ratio", cfg.chunking.overlap_ratio)),
        )

    if "crawl" in data:
        c = data["crawl"] or {}
        cfg.crawl = CrawlCfg(
            provider=str(c.get("provider", cfg.crawl.provider)).lower(),
            timeout=float(c.get("timeout", cfg.crawl.timeout)),
            max_results=int(c.get("max_results", cfg.crawl.max_results)),
            max_depth=int(c.get("max_depth", cfg.crawl.max_depth)),
            max_pages=int(c.get("max_pages", cfg.crawl.max_pages)),
            min_content_chars=int(c.get("min_content_chars", cfg.crawl.min_content_chars)),
        )

    if "storage" in data:
        s = data["storage"] or {}
        cfg.storage = StorageCfg(dir=str(s.get("dir", cfg.storage.dir)))

    if "prompt" in data:
        p = data["prompt"] or {}
        cfg.prompt = PromptCfg(system=p.get("system"), file=p.get("file"))

    if "sources" in data:
        cfg.sources = _as_record_list(data["sources"], "sources")

    if "documents" in data:
        cfg.documents = _as_record_list(data["documents"], "documents")

    return cfg


def _as_record_list(raw: Any, section: str) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(r, dict) for r in raw):
        raise ConfigError(f"'{section}' must be a list of mappings.")
    return [dict(r) for r in raw]


def _apply_env_overrides(cfg: SentinelConfig) -> SentinelConfig:
    """Apply SENTINEL_* environment variable overrides."""
    if model := os.environ.get("SENTINEL_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("SENTINEL_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if provider := os.environ.get("SENTINEL_CRAWL_PROVIDER"):
        cfg.crawl.provider = provider.lower()
    if storage_dir := os.environ.get("SENTINEL_STORAGE_DIR"):
        cfg.storage.dir = storage_dir
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SentinelConfig:
    """Load and return a merged *SentinelConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *sentinel.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, if
            ``prompt.file`` is a URL, or if ``crawl.provider`` is unknown.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged, base_dir=search_dir)

    if cfg.prompt.file:
        _validate_prompt_path(cfg.prompt.file)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)
    _validate_provider(cfg.crawl.provider)

    return cfg
