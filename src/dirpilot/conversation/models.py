"""Conversation data models.

Created: 2026-10-10

A ``ChatSession`` is an ordered log of ``ChatMessage`` values. An AI message
may carry one ``Proposal``; resolving the proposal clears it from the message
and appends a system notice.

Timestamps are ISO 8601 strings so sessions serialize straight to JSON.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from dirpilot.proposals.models import Proposal


class MessageAuthor(str, Enum):
    USER = "user"
    AI = "ai"
    SYSTEM = "system"


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class ChatMessage:
    id: str
    author: MessageAuthor
    content: str
    timestamp: str = field(default_factory=now_iso)
    proposal: Proposal | None = None
    is_edited: bool = False
    is_favorite: bool = False

    @classmethod
    def create(cls, author: MessageAuthor, content: str) -> ChatMessage:
        return cls(id=generate_id(author.value), author=author, content=content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "proposal": self.proposal.to_dict() if self.proposal else None,
            "is_edited": self.is_edited,
            "is_favorite": self.is_favorite,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        proposal = data.get("proposal")
        return cls(
            id=data["id"],
            author=MessageAuthor(data["author"]),
            content=data.get("content", ""),
            timestamp=data.get("timestamp") or now_iso(),
            proposal=Proposal.from_dict(proposal) if proposal else None,
            is_edited=data.get("is_edited", False),
            is_favorite=data.get("is_favorite", False),
        )


@dataclass
class ChatSession:
    id: str
    name: str
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    project_path: str | None = None

    @classmethod
    def create(cls, name: str | None = None, project_path: str | None = None) -> ChatSession:
        created = datetime.now(UTC)
        return cls(
            id=generate_id("session"),
            name=name or f"Session {created:%Y-%m-%d %H:%M}",
            created_at=created.isoformat(),
            updated_at=created.isoformat(),
            project_path=project_path,
        )

    def get_message(self, message_id: str) -> ChatMessage | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def touch(self) -> None:
        self.updated_at = now_iso()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "messages": [m.to_dict() for m in self.messages],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "project_path": self.project_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatSession:
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            messages=[ChatMessage.from_dict(m) for m in data.get("messages", [])],
            created_at=data.get("created_at") or now_iso(),
            updated_at=data.get("updated_at") or now_iso(),
            project_path=data.get("project_path"),
        )
