"""LLM provider resolution.

Turns settings into an immutable ``LLMClient`` descriptor and builds the SDK
client for it. Ollama is reached through its Anthropic-compatible endpoint, so
one SDK covers both providers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dirpilot.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMClient:
    """Resolved provider configuration.

    Created via ``resolve_llm_client()``, not intended for direct construction.
    """

    provider: str  # "anthropic" | "ollama"
    model: str
    api_key: str | None  # None for Ollama
    ollama_host: str

    @property
    def is_ollama(self) -> bool:
        return self.provider == "ollama"

    @property
    def is_anthropic(self) -> bool:
        return self.provider == "anthropic"

    def create_anthropic_client(
        self,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        """Create an ``AsyncAnthropic`` client configured for this provider."""
        from anthropic import AsyncAnthropic

        if self.is_ollama:
            return AsyncAnthropic(
                base_url=self.ollama_host,
                api_key="ollama",
                timeout=timeout if timeout is not None else 120.0,
                max_retries=max_retries if max_retries is not None else 1,
            )

        return AsyncAnthropic(
            api_key=self.api_key,
            timeout=timeout if timeout is not None else 60.0,
            max_retries=max_retries if max_retries is not None else 2,
        )

    def format_api_error(self, error: Exception) -> str:
        """Return a user-facing message for a failed generation call."""
        error_str = str(error)

        if self.is_ollama:
            if "not_found" in error_str or "not found" in error_str.lower():
                return (
                    f"Model '{self.model}' not found in Ollama. "
                    "Run `ollama list` to see available models."
                )
            if "connection" in error_str.lower() or "refused" in error_str.lower():
                return f"Cannot connect to Ollama at {self.ollama_host}. Is `ollama serve` running?"
            return f"Ollama error: {error_str}"

        if "api key" in error_str.lower() or "authentication" in error_str.lower():
            return "Anthropic API key not configured. Set DIRPILOT_ANTHROPIC_API_KEY."
        return f"API error: {error_str}"


def resolve_llm_client(
    settings: Settings,
    *,
    force_provider: str | None = None,
) -> LLMClient:
    """Resolve settings into an ``LLMClient``.

    With ``llm_provider == "auto"`` Anthropic is used when a key is set,
    otherwise Ollama.
    """
    provider = force_provider or settings.llm_provider

    if provider == "auto":
        provider = "anthropic" if settings.anthropic_api_key else "ollama"

    if provider == "ollama":
        return LLMClient(
            provider="ollama",
            model=settings.ollama_model,
            api_key=None,
            ollama_host=settings.ollama_host,
        )

    if provider != "anthropic":
        logger.warning("Unknown llm_provider %r, using anthropic", provider)

    return LLMClient(
        provider="anthropic",
        model=settings.anthropic_model,
        api_key=settings.anthropic_api_key,
        ollama_host=settings.ollama_host,
    )
