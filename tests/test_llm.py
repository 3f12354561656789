"""Tests for LLM provider resolution, the system prompt and streaming generation."""

import dataclasses
from unittest.mock import MagicMock, patch

import pytest

from dirpilot.config import Settings
from dirpilot.llm.client import LLMClient, resolve_llm_client
from dirpilot.llm.generation import AnthropicGenerator, GenerationError
from dirpilot.llm.prompts import build_system_prompt


class FakeStream:
    """Stands in for the object returned by ``client.messages.stream``."""

    def __init__(self, texts, error=None):
        self.texts = texts
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        async def _gen():
            for text in self.texts:
                yield text
            if self.error is not None:
                raise self.error

        return _gen()


def fake_client(texts, error=None):
    client = MagicMock()
    client.messages.stream = MagicMock(return_value=FakeStream(texts, error))
    return client


ANTHROPIC = LLMClient(provider="anthropic", model="claude-x", api_key="sk-ant", ollama_host="http://localhost:11434")
OLLAMA = LLMClient(provider="ollama", model="llama3.2", api_key=None, ollama_host="http://localhost:11434")

# ---------------------------------------------------------------------------
# resolve_llm_client
# ---------------------------------------------------------------------------


class TestResolveLLMClient:
    def test_resolve_auto_anthropic(self):
        """auto + anthropic key -> anthropic provider."""
        settings = Settings(llm_provider="auto", anthropic_api_key="sk-ant")
        llm = resolve_llm_client(settings)
        assert llm.provider == "anthropic"
        assert llm.model == settings.anthropic_model
        assert llm.api_key == "sk-ant"

    def test_resolve_auto_ollama(self):
        """auto + no key -> ollama fallback."""
        settings = Settings(
            llm_provider="auto",
            anthropic_api_key=None,
            ollama_host="http://myhost:11434",
            ollama_model="qwen2.5:7b",
        )
        llm = resolve_llm_client(settings)
        assert llm.is_ollama
        assert llm.model == "qwen2.5:7b"
        assert llm.api_key is None
        assert llm.ollama_host == "http://myhost:11434"

    def test_force_provider(self):
        settings = Settings(llm_provider="anthropic", anthropic_api_key="sk-ant")
        assert resolve_llm_client(settings, force_provider="ollama").is_ollama

    def test_unknown_provider_falls_back(self):
        settings = Settings(llm_provider="gemini", anthropic_api_key="sk-ant")
        assert resolve_llm_client(settings).is_anthropic

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ANTHROPIC.model = "other"


class TestCreateClient:
    @patch("anthropic.AsyncAnthropic")
    def test_ollama_uses_base_url(self, mock_cls):
        OLLAMA.create_anthropic_client()
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:11434"
        assert kwargs["api_key"] == "ollama"

    @patch("anthropic.AsyncAnthropic")
    def test_anthropic_uses_key(self, mock_cls):
        ANTHROPIC.create_anthropic_client(timeout=5.0)
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-ant"
        assert kwargs["timeout"] == 5.0
        assert "base_url" not in kwargs


class TestFormatApiError:
    def test_ollama_connection(self):
        msg = OLLAMA.format_api_error(Exception("Connection refused"))
        assert "Cannot connect to Ollama" in msg

    def test_ollama_missing_model(self):
        assert "not found in Ollama" in OLLAMA.format_api_error(Exception("model not_found"))

    def test_anthropic_auth(self):
        assert "DIRPILOT_ANTHROPIC_API_KEY" in ANTHROPIC.format_api_error(Exception("authentication_error"))

    def test_generic(self):
        assert ANTHROPIC.format_api_error(Exception("boom")) == "API error: boom"


# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------


class TestSystemPrompt:
    def test_tree_and_active_file(self):
        prompt = build_system_prompt("- proj/\n  - a.ts", ("a.ts", "const a = 1;"))
        assert "DIRECTORY STRUCTURE:\n- proj/\n  - a.ts" in prompt
        assert "--BEGIN a.ts--\nconst a = 1;\n--END a.ts--" in prompt
        assert "```json:file-op" in prompt
        assert '"filePath"' in prompt

    def test_without_context(self):
        prompt = build_system_prompt(None, None)
        assert "DIRECTORY STRUCTURE" not in prompt
        assert "--BEGIN" not in prompt

    def test_response_language(self):
        assert "Reply in German" in build_system_prompt(None, None, response_language="German")


# ---------------------------------------------------------------------------
# AnthropicGenerator
# ---------------------------------------------------------------------------


class TestAnthropicGenerator:
    async def test_streams_text(self):
        client = fake_client(["Hel", "lo"])
        generator = AnthropicGenerator(ANTHROPIC, max_tokens=100, client=client)
        chunks = [c async for c in generator.stream("hi", "- proj/", None)]
        assert chunks == ["Hel", "lo"]

        kwargs = client.messages.stream.call_args.kwargs
        assert kwargs["model"] == "claude-x"
        assert kwargs["max_tokens"] == 100
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert "- proj/" in kwargs["system"]

    async def test_errors_become_generation_errors(self):
        generator = AnthropicGenerator(OLLAMA, client=fake_client(["par"], Exception("Connection refused")))
        chunks = []
        with pytest.raises(GenerationError, match="Cannot connect to Ollama"):
            async for chunk in generator.stream("hi", None, None):
                chunks.append(chunk)
        assert chunks == ["par"]

    def test_from_settings(self):
        settings = Settings(llm_provider="ollama", max_tokens=256, response_language="German")
        generator = AnthropicGenerator.from_settings(settings)
        assert generator.llm.is_ollama
        assert generator.max_tokens == 256
        assert generator.response_language == "German"
