"""Configuration for dirpilot.

Created: 2026-10-06

Settings are read (in increasing priority) from defaults, ``~/.dirpilot/config.json``
and ``DIRPILOT_*`` environment variables. ``get_settings()`` is cached; call
``get_settings.cache_clear()`` after changing the environment in tests.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Never enumerated, whatever ``excluded_names`` says.
RESERVED_EXCLUDED_NAMES: frozenset[str] = frozenset({"node_modules", ".git"})


def get_config_dir() -> Path:
    """Return ``~/.dirpilot``, creating it if needed."""
    config_dir = Path.home() / ".dirpilot"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="DIRPILOT_", extra="ignore")

    # Workspace
    file_jail_path: Path = Field(
        default_factory=Path.home,
        description="Roots may only be granted inside this directory",
    )
    excluded_names: list[str] = Field(
        default_factory=lambda: sorted(RESERVED_EXCLUDED_NAMES),
        description="Entry names skipped while snapshotting",
    )
    max_active_file_bytes: int = Field(default=1024 * 1024, ge=1)

    # LLM
    llm_provider: str = Field(default="auto", description="auto | anthropic | ollama")
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    max_tokens: int = Field(default=8192, ge=1)
    response_language: str | None = None

    # Storage
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".dirpilot")
    max_sessions: int = Field(default=100, ge=1)

    # Server
    web_host: str = "127.0.0.1"
    web_port: int = 8899
    api_cors_allowed_origins: list[str] = Field(default_factory=list)

    log_level: str = "INFO"

    @property
    def all_excluded_names(self) -> frozenset[str]:
        return RESERVED_EXCLUDED_NAMES | frozenset(self.excluded_names)

    @property
    def audit_log_path(self) -> Path:
        return self.data_dir / "audit.jsonl"

    @property
    def sessions_path(self) -> Path:
        return self.data_dir / "sessions.json"

    def save(self, path: Path | None = None) -> None:
        """Persist the settings to the JSON config file."""
        path = path or get_config_path()
        data = self.model_dump(mode="json", exclude_none=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from the JSON config file, falling back to defaults."""
        path = path or get_config_path()
        values: dict[str, Any] = {}
        if path.exists():
            try:
                values = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable config %s: %s", path, e)
        # Environment variables win over the file.
        values = {
            key: value
            for key, value in values.items()
            if f"DIRPILOT_{key.upper()}" not in os.environ
        }
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings.load()
