"""Tests for the status and version commands."""

from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from sentinel.cli.main import app
from sentinel.store.cache import CacheGate
from sentinel.store.knowledge_store import KnowledgeStore

runner = CliRunner()


def _kb_dir(project: Path) -> Path:
    return project / ".cache" / "knowledge"


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("sentinel ")


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "sentinel" in result.output


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


def test_status_without_knowledge_base(tmp_path: Path) -> None:
    result = runner.invoke(app, ["status", "-C", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "No knowledge base yet." in result.output
    assert "No crawl recorded." in result.output


def test_status_counts_chunks_by_origin(tmp_path: Path, make_chunk) -> None:
    store = KnowledgeStore(_kb_dir(tmp_path) / "knowledge-base.json", "openai/text-embedding-3-large")
    store.append_chunks(
        [
            make_chunk("crawled-a-0", tags={"crawled"}),
            make_chunk("crawled-a-1", tags={"crawled"}, document_id="crawled-a"),
            make_chunk("policy-0"),
        ]
    )
    CacheGate(_kb_dir(tmp_path) / "crawl-cache.json").record_run("https://a.example.com/", 2)

    result = runner.invoke(app, ["status", "-C", str(tmp_path)])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert any("Chunks" in line and "3" in line for line in lines)
    assert any("Crawled" in line and "2" in line for line in lines)
    assert any("Curated" in line and "1" in line for line in lines)
    assert any("Dimensions" in line and "2" in line for line in lines)
    assert "fresh" in result.output


def test_status_reports_configured_models(tmp_path: Path) -> None:
    (tmp_path / "sentinel.yaml").write_text(
        yaml.dump({"generation": {"model": "anthropic/claude-3-5-haiku"}, "crawl": {"provider": "direct"}}),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["status", "-C", str(tmp_path)])
    assert "anthropic/claude-3-5-haiku" in result.output
    assert "direct" in result.output


def test_status_corrupt_knowledge_base_exits_1(tmp_path: Path) -> None:
    _kb_dir(tmp_path).mkdir(parents=True)
    (_kb_dir(tmp_path) / "knowledge-base.json").write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["status", "-C", str(tmp_path)])

    assert result.exit_code == 1
    assert "corrupt" in result.output
