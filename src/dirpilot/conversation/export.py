# Session export - Markdown and JSON renderings of a chat session.
# Created: 2026-10-10

from __future__ import annotations

import json
import re
from datetime import UTC, datetime

from dirpilot.conversation.models import ChatMessage, ChatSession, MessageAuthor

_AUTHOR_LABELS = {
    MessageAuthor.USER: "User",
    MessageAuthor.AI: "AI Assistant",
    MessageAuthor.SYSTEM: "System",
}


def _message_to_markdown(message: ChatMessage) -> str:
    lines = [f"## {_AUTHOR_LABELS[message.author]} - {message.timestamp}", ""]
    if message.is_favorite:
        lines += ["*Favorited*", ""]
    if message.is_edited:
        lines += ["*Edited*", ""]
    lines += [message.content, ""]

    if message.proposal is not None:
        instruction = message.proposal.instruction
        action = "Create" if instruction.type == "create" else "Update"
        lines += [
            "### File operation",
            "",
            f"- **Action**: {action}",
            f"- **File**: `{instruction.file_path}`",
            f"- **Status**: {message.proposal.status.value}",
            "",
            "**Content:**",
            "",
            "```",
            instruction.new_content,
            "```",
            "",
        ]
    lines += ["---", ""]
    return "\n".join(lines)


def session_to_markdown(session: ChatSession) -> str:
    header = [
        f"# Chat Session: {session.name}",
        "",
        f"**Created**: {session.created_at}",
        f"**Last Updated**: {session.updated_at}",
    ]
    if session.project_path:
        header.append(f"**Project**: {session.project_path}")
    header += [f"**Messages**: {len(session.messages)}", "", "---", ""]
    body = [_message_to_markdown(m) for m in session.messages]
    return "\n".join(header) + "\n" + "\n".join(body)


def session_to_json(session: ChatSession) -> str:
    data = session.to_dict()
    data["exported_at"] = datetime.now(UTC).isoformat()
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_filename(session_name: str | None = None, extension: str = "md") -> str:
    """``<safe-name>-<YYYY-MM-DDTHH-MM-SS>.<ext>``"""
    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S")
    safe_name = re.sub(r"[^a-zA-Z0-9_-]", "-", session_name or "chat-session")
    return f"{safe_name}-{timestamp}.{extension}"


def sessions_to_json(sessions: list[ChatSession]) -> str:
    """Backup of every stored session in one document."""
    data = {
        "sessions": [s.to_dict() for s in sessions],
        "exported_at": datetime.now(UTC).isoformat(),
        "version": "1.0",
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
