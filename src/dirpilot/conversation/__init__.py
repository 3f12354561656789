"""Conversation log: messages, sessions, persistence and export."""

from dirpilot.conversation.models import ChatMessage, ChatSession, MessageAuthor
from dirpilot.conversation.store import (
    ConversationStoreProtocol,
    FileConversationStore,
    InMemoryConversationStore,
)

__all__ = [
    "ChatMessage",
    "ChatSession",
    "ConversationStoreProtocol",
    "FileConversationStore",
    "InMemoryConversationStore",
    "MessageAuthor",
]
