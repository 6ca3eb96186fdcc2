"""Database module for chat persistence."""

from dumai_chat.db.models import (
    PLACEHOLDER_PASSWORD,
    UNSET_LANGUAGE,
    ChatMessage,
    ChatSession,
    User,
)
from dumai_chat.db.repository import (
    ChatSessionRepository,
    Database,
    MessageRepository,
    UserRepository,
)

__all__ = [
    "PLACEHOLDER_PASSWORD",
    "UNSET_LANGUAGE",
    "ChatMessage",
    "ChatSession",
    "User",
    "ChatSessionRepository",
    "Database",
    "MessageRepository",
    "UserRepository",
]
