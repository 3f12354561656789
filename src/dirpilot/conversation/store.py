"""Conversation storage.

Created: 2026-10-10

``ConversationStoreProtocol`` is the port the pipeline controller persists
through. Two implementations:

- ``InMemoryConversationStore``: dict-backed, for tests and ephemeral runs.
- ``FileConversationStore``: one JSON file (``sessions.json``) holding every
  session plus the current session id. Writes go to a temp file which is then
  renamed over the original. Only the ``max_sessions`` most recently updated
  sessions are kept.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from dirpilot.conversation.models import ChatSession

logger = logging.getLogger(__name__)


class ConversationStoreProtocol(Protocol):
    async def save_session(self, session: ChatSession) -> None: ...

    async def get_session(self, session_id: str) -> ChatSession | None: ...

    async def list_sessions(self) -> list[ChatSession]:
        """All sessions, most recently updated first."""
        ...

    async def delete_session(self, session_id: str) -> bool: ...

    async def get_current_session_id(self) -> str | None: ...

    async def set_current_session_id(self, session_id: str | None) -> None: ...


class InMemoryConversationStore:
    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._current: str | None = None

    async def save_session(self, session: ChatSession) -> None:
        self._sessions[session.id] = session

    async def get_session(self, session_id: str) -> ChatSession | None:
        return self._sessions.get(session_id)

    async def list_sessions(self) -> list[ChatSession]:
        return sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)

    async def delete_session(self, session_id: str) -> bool:
        if self._current == session_id:
            self._current = None
        return self._sessions.pop(session_id, None) is not None

    async def get_current_session_id(self) -> str | None:
        return self._current

    async def set_current_session_id(self, session_id: str | None) -> None:
        self._current = session_id


class FileConversationStore:
    """JSON-file conversation store."""

    def __init__(self, path: Path, max_sessions: int = 100):
        self.path = path
        self.max_sessions = max_sessions
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._sessions: dict[str, ChatSession] = {}
        self._current: str | None = None
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading {self.path}: {e}")
            return

        for raw in data.get("sessions", []):
            try:
                session = ChatSession.from_dict(raw)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable session in {self.path}: {e}")
                continue
            self._sessions[session.id] = session
        self._current = data.get("current_session_id")
        logger.info(f"Loaded {len(self._sessions)} chat sessions")

    def _persist(self) -> None:
        data: dict[str, Any] = {
            "current_session_id": self._current,
            "sessions": [s.to_dict() for s in self._sessions.values()],
        }
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Error saving {self.path}: {e}")
            if temp_path.exists():
                temp_path.unlink()

    def _trim(self) -> None:
        if len(self._sessions) <= self.max_sessions:
            return
        ordered = sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)
        for stale in ordered[self.max_sessions :]:
            if stale.id != self._current:
                del self._sessions[stale.id]

    async def save_session(self, session: ChatSession) -> None:
        self._sessions[session.id] = session
        self._trim()
        self._persist()

    async def get_session(self, session_id: str) -> ChatSession | None:
        return self._sessions.get(session_id)

    async def list_sessions(self) -> list[ChatSession]:
        return sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)

    async def delete_session(self, session_id: str) -> bool:
        if self._sessions.pop(session_id, None) is None:
            return False
        if self._current == session_id:
            self._current = None
        self._persist()
        return True

    async def get_current_session_id(self) -> str | None:
        return self._current

    async def set_current_session_id(self, session_id: str | None) -> None:
        self._current = session_id
        self._persist()
