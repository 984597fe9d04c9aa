"""Tests for sentinel rich error messages."""

from __future__ import annotations

import pytest

from sentinel.cli.errors import (
    err_completion_failed,
    err_config_file,
    err_configuration,
    err_embedding_failed,
    err_empty_knowledge_base,
    err_invalid_source,
    err_no_api_key,
    err_no_sources,
    err_storage,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    """Every error must contain a cause AND an actionable instruction."""
    lower = msg.lower()
    return any(kw in lower for kw in ["run:", "set:", "export", "fix ", "add ", "check ", "every source"])


# ---------------------------------------------------------------------------
# All messages are actionable
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("openai/gpt-5-mini"),
        err_config_file(ValueError("bad")),
        err_configuration("TAVILY_API_KEY is not configured."),
        err_no_sources(),
        err_invalid_source(ValueError("Source 'x' has no url.")),
        err_embedding_failed(RuntimeError("quota")),
        err_completion_failed(RuntimeError("rate limit")),
        err_empty_knowledge_base(),
        err_storage(PermissionError("denied")),
    ],
)
def test_error_is_actionable(msg: str) -> None:
    assert _has_action(msg)


# ---------------------------------------------------------------------------
# Specific content
# ---------------------------------------------------------------------------


def test_no_api_key_names_env_var() -> None:
    msg = err_no_api_key("anthropic/claude-3-5-haiku")
    assert "'anthropic'" in msg
    assert "ANTHROPIC_API_KEY" in msg


def test_no_api_key_bare_model_is_openai() -> None:
    assert "OPENAI_API_KEY" in err_no_api_key("gpt-4o-mini")


def test_no_sources_shows_yaml_example() -> None:
    msg = err_no_sources()
    assert "sources:" in msg
    assert "url: https://" in msg


def test_messages_include_cause() -> None:
    assert "quota" in err_embedding_failed(RuntimeError("quota"))
    assert "denied" in err_storage(PermissionError("denied"))
    assert "has no url" in err_invalid_source(ValueError("Source 'x' has no url."))
