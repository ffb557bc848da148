"""LiteLLM client wrapper with retry, backoff, and API key validation.

All embedding and generation calls route through this module.
LiteLLM's built-in retry is used (num_retries=3, exponential backoff).
API key presence is validated at startup before the server accepts requests.
"""

from __future__ import annotations

import logging
import os

import litellm

from ragserve.errors import EmbeddingUnavailable, GenerationUnavailable
from ragserve.interfaces import EmbeddingClient, GenerationClient

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)


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


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string (default openai)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return  # No key required (e.g. ollama) or provider-specific auth (e.g. bedrock)

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 500,
    temperature: float = 0.0,
    num_retries: int = 3,
) -> str:
    """Call litellm.completion() with retry/backoff. Returns content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature (0 = deterministic).
        num_retries: Number of retries on transient errors (exponential backoff).

    Returns:
        The text content of the first choice.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


def embed(model: str, text: str, num_retries: int = 3) -> list[float]:
    """Call litellm.embedding() with retry/backoff. Returns embedding vector.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        text: Text to embed.
        num_retries: Number of retries on transient errors.

    Returns:
        Embedding as a list of floats.
    """
    response = litellm.embedding(
        model=model,
        input=[text],
        num_retries=num_retries,
    )
    return response.data[0]["embedding"]


# ------------------------------------------------------------------
# Capability adapters
# ------------------------------------------------------------------


class LiteLLMEmbeddingClient(EmbeddingClient):
    """EmbeddingClient backed by ``litellm.embedding()``."""

    def __init__(self, model: str, num_retries: int = 3) -> None:
        self.model = model
        self.num_retries = num_retries

    def embed(self, text: str) -> list[float]:
        try:
            return embed(self.model, text, num_retries=self.num_retries)
        except Exception as exc:
            logger.warning("Embedding call to %s failed: %s", self.model, exc)
            raise EmbeddingUnavailable() from exc


class LiteLLMGenerationClient(GenerationClient):
    """GenerationClient backed by ``litellm.completion()``."""

    def __init__(self, model: str, temperature: float = 0.0, num_retries: int = 3) -> None:
        self.model = model
        self.temperature = temperature
        self.num_retries = num_retries

    def generate(self, system_prompt: str, user_text: str, max_tokens: int) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_text},
        ]
        try:
            return complete(
                self.model,
                messages,
                max_tokens=max_tokens,
                temperature=self.temperature,
                num_retries=self.num_retries,
            )
        except Exception as exc:
            logger.warning("Completion call to %s failed: %s", self.model, exc)
            raise GenerationUnavailable() from exc
