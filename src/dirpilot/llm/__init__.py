"""LLM provider resolution and streaming text generation."""

from dirpilot.llm.client import LLMClient, resolve_llm_client
from dirpilot.llm.generation import AnthropicGenerator, GenerationError, TextGenerator

__all__ = [
    "AnthropicGenerator",
    "GenerationError",
    "LLMClient",
    "TextGenerator",
    "resolve_llm_client",
]
