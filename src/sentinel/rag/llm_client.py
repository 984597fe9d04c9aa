"""LiteLLM client wrapper: API key validation and streaming completion.

Completion calls in the answer pipeline route through this module.
LiteLLM's built-in retry is used (``num_retries``, exponential backoff).
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import litellm

from sentinel.errors import CompletionError, ConfigurationError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_env_var(model: str) -> str | None:
    """Return the env var holding the API key for *model*, if one is required."""
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    return _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        ConfigurationError: If the required key is missing from environment.
    """
    env_var = provider_env_var(model)
    if env_var is None:
        return
    if not os.getenv(env_var):
        provider = model.split("/")[0] if "/" in model else "openai"
        raise ConfigurationError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def stream_complete(
    model: str,
    system: str,
    messages: list[dict],
    max_tokens: int = 1200,
    num_retries: int = 3,
) -> Iterator[str]:
    """Stream a completion for *messages* under *system*, yielding text deltas.

    Args:
        model: LiteLLM model string (provider/model format).
        system: System prompt, already augmented with retrieved context.
        messages: Conversation so far (OpenAI-style role/content dicts).
        max_tokens: Maximum output tokens.
        num_retries: Retries on transient errors before the stream opens.

    Raises:
        CompletionError: The provider call failed, before or during streaming.
    """
    try:
        response = litellm.completion(
            model=model,
            messages=[{"role": "system", "content": system}, *messages],
            max_tokens=max_tokens,
            stream=True,
            num_retries=num_retries,
        )
        for part in response:
            delta = part.choices[0].delta.content if part.choices else None
            if delta:
                yield delta
    except Exception as exc:
        raise CompletionError(f"Completion request to '{model}' failed: {exc}") from exc
