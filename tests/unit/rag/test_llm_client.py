"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sentinel.errors import CompletionError, ConfigurationError, SentinelError
from sentinel.rag.llm_client import provider_env_var, stream_complete, validate_api_key


def _part(content):
    part = MagicMock()
    part.choices = [MagicMock()]
    part.choices[0].delta.content = content
    return part


# ------------------------------------------------------------------
# provider_env_var / validate_api_key
# ------------------------------------------------------------------


def test_provider_env_var_known_and_derived():
    assert provider_env_var("anthropic/claude-3-5-haiku") == "ANTHROPIC_API_KEY"
    assert provider_env_var("gpt-4o-mini") == "OPENAI_API_KEY"
    assert provider_env_var("deepseek/deepseek-chat") == "DEEPSEEK_API_KEY"
    assert provider_env_var("ollama/nomic-embed-text") is None


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    validate_api_key("anthropic/claude-3-5-haiku")


def test_validate_api_key_ollama_no_key_required():
    # Local provider, never raises
    validate_api_key("ollama/llama3")


def test_configuration_error_is_sentinel_error():
    assert issubclass(ConfigurationError, SentinelError)


# ------------------------------------------------------------------
# stream_complete()
# ------------------------------------------------------------------


def test_stream_complete_yields_non_empty_deltas():
    stream = [_part("Patch "), _part(None), _part(""), _part("weekly.")]
    with patch("sentinel.rag.llm_client.litellm.completion", return_value=iter(stream)):
        out = list(stream_complete("openai/gpt-4o-mini", "SYS", [{"role": "user", "content": "q"}]))
    assert out == ["Patch ", "weekly."]


def test_stream_complete_skips_parts_without_choices():
    empty = MagicMock()
    empty.choices = []
    with patch("sentinel.rag.llm_client.litellm.completion", return_value=iter([empty, _part("ok")])):
        assert list(stream_complete("m", "SYS", [])) == ["ok"]


def test_stream_complete_passes_params():
    with patch("sentinel.rag.llm_client.litellm.completion", return_value=iter([])) as mock_c:
        list(
            stream_complete(
                "anthropic/claude-3-5-haiku",
                "You are Sentinel.",
                [{"role": "user", "content": "What is XSS?"}],
                max_tokens=256,
                num_retries=1,
            )
        )

    kwargs = mock_c.call_args.kwargs
    assert kwargs["model"] == "anthropic/claude-3-5-haiku"
    assert kwargs["messages"] == [
        {"role": "system", "content": "You are Sentinel."},
        {"role": "user", "content": "What is XSS?"},
    ]
    assert kwargs["max_tokens"] == 256
    assert kwargs["stream"] is True
    assert kwargs["num_retries"] == 1


def test_stream_complete_wraps_provider_errors():
    with patch(
        "sentinel.rag.llm_client.litellm.completion", side_effect=RuntimeError("401 invalid api key")
    ):
        with pytest.raises(CompletionError, match="401 invalid api key"):
            list(stream_complete("openai/gpt-4o-mini", "SYS", []))


def test_stream_complete_wraps_errors_mid_stream():
    def _broken():
        yield _part("Patch ")
        raise RuntimeError("connection reset")

    with patch("sentinel.rag.llm_client.litellm.completion", return_value=_broken()):
        stream = stream_complete("m", "SYS", [])
        assert next(stream) == "Patch "
        with pytest.raises(CompletionError, match="connection reset"):
            next(stream)
