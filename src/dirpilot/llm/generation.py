# Text generation service - streams reply fragments for one turn.
# Created: 2026-10-09

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from dirpilot.config import Settings
from dirpilot.llm.client import LLMClient, resolve_llm_client
from dirpilot.llm.prompts import build_system_prompt

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The generation service failed; the message is safe to show the user."""


class TextGenerator(Protocol):
    """Anything that turns a prompt plus project context into text fragments.

    The returned iterator is finite and can only be consumed once.
    """

    def stream(
        self,
        prompt: str,
        tree_text: str | None,
        active_file: tuple[str, str] | None,
    ) -> AsyncIterator[str]: ...


class AnthropicGenerator:
    """Streams replies through the Anthropic Messages API (or Ollama's compatible endpoint)."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        max_tokens: int = 8192,
        response_language: str | None = None,
        client: Any = None,
    ):
        self.llm = llm
        self.max_tokens = max_tokens
        self.response_language = response_language
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> AnthropicGenerator:
        return cls(
            resolve_llm_client(settings),
            max_tokens=settings.max_tokens,
            response_language=settings.response_language,
        )

    def _get_client(self):
        if self._client is None:
            self._client = self.llm.create_anthropic_client()
        return self._client

    async def stream(
        self,
        prompt: str,
        tree_text: str | None,
        active_file: tuple[str, str] | None,
    ) -> AsyncIterator[str]:
        system = build_system_prompt(tree_text, active_file, self.response_language)
        try:
            async with self._get_client().messages.stream(
                model=self.llm.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            ) as response:
                async for text in response.text_stream:
                    yield text
        except Exception as e:
            logger.error("Generation failed (%s): %s", self.llm.provider, e)
            raise GenerationError(self.llm.format_api_error(e)) from e
