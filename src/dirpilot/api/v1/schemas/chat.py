# Chat schemas.
# Created: 2026-10-12

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Send a prompt for one turn."""

    content: str = Field(..., min_length=1, max_length=100000)


class ChatResponse(BaseModel):
    """Complete (non-streaming) turn result."""

    message_id: str
    content: str
    proposal: dict[str, Any] | None = None


class MessageListResponse(BaseModel):
    session_id: str
    messages: list[dict[str, Any]] = []
    total: int = 0


class EditMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=100000)
