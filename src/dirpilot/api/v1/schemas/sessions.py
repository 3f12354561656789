# Session schemas.
# Created: 2026-10-12

from __future__ import annotations

from pydantic import BaseModel

from dirpilot.conversation.models import ChatSession


class SessionSummary(BaseModel):
    id: str
    name: str
    created_at: str
    updated_at: str
    project_path: str | None = None
    message_count: int = 0

    @classmethod
    def from_session(cls, session: ChatSession) -> SessionSummary:
        return cls(
            id=session.id,
            name=session.name,
            created_at=session.created_at,
            updated_at=session.updated_at,
            project_path=session.project_path,
            message_count=len(session.messages),
        )


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary] = []
    total: int = 0
    current_session_id: str | None = None


class CreateSessionRequest(BaseModel):
    name: str | None = None
