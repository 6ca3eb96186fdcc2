"""SQLModel models for identity, session and message persistence.

Schema design:
- Table names: snake_case plural (users, chat_sessions, messages)
- Integer ids use SQLite AUTOINCREMENT so a rolled-back or gapped id is
  never handed out again
- messages.session_id is a plain indexed column, not a foreign key, so
  transient (unowned) session ids can label messages too
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from sqlmodel import Field, SQLModel

# Type alias for message role
MessageRole = Literal["user", "assistant"]

# Language tag stored when no language could be detected
UNSET_LANGUAGE = "unknown"

# Stored in place of a real password; authentication is not implemented
PLACEHOLDER_PASSWORD = "placeholder"


def generate_id() -> str:
    """Generate a UUID-based ID for session records."""
    return str(uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class User(SQLModel, table=True):
    """Registered display name with a stable numeric id.

    Attributes:
        id: Auto-incremented primary key, never reused
        username: Unique, case-sensitive display name
        password: Opaque credential placeholder
    """

    __tablename__ = "users"
    __table_args__ = {"extend_existing": True, "sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password: str = PLACEHOLDER_PASSWORD


class ChatSession(SQLModel, table=True):
    """One conversation thread owned by a single user.

    Attributes:
        id: UUID-based primary key
        user_id: Foreign key to the owning user
        title: Display title, starts as the default placeholder
        title_is_default: True until the title has been derived once
        personality: Behavioral hint chosen at creation, never changed
        created_at: When the session was created
        updated_at: Last title change or message append
    """

    __tablename__ = "chat_sessions"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=generate_id, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    title_is_default: bool = True
    personality: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ChatMessage(SQLModel, table=True):
    """A single stored message.

    Attributes:
        id: Auto-incremented primary key, defines the total message order
        session_id: Session the message belongs to (None for legacy messages)
        role: Message role (user or assistant)
        content: Message text content
        language: Language tag detected from the user's text
        timestamp: When the message was stored
    """

    __tablename__ = "messages"
    __table_args__ = {"extend_existing": True, "sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    session_id: str | None = Field(default=None, index=True)
    role: str  # "user" or "assistant" - stored as string in DB
    content: str
    language: str = UNSET_LANGUAGE
    timestamp: datetime = Field(default_factory=utc_now)
