"""Request and response models for the HTTP API.

JSON field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dumai_chat.db.models import ChatMessage, ChatSession, User, as_utc

USERNAME_MAX_LENGTH = 64


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(ApiModel):
    """Request model for a chat turn."""

    message: str | None = None
    initial: bool | None = None
    session_id: str | None = None
    user_id: int | None = None
    username: str | None = Field(default=None, max_length=USERNAME_MAX_LENGTH)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str | None) -> str | None:
        """Treat a blank username as no username."""
        if v is None:
            return None
        return v.strip() or None


class ChatResponse(ApiModel):
    """Response model for a chat turn."""

    message: str
    session_id: str
    language: str


class UserCreateRequest(ApiModel):
    """Request model for registering a display name."""

    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str | None = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        """Reject usernames that are blank after stripping."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("username must not be blank")
        return stripped


class UserItem(ApiModel):
    """Public view of a user."""

    id: int
    username: str

    @classmethod
    def from_user(cls, user: User) -> "UserItem":
        return cls(id=user.id, username=user.username)


class UserResponse(ApiModel):
    """Response model wrapping a user."""

    user: UserItem


class SessionItem(ApiModel):
    """Response model for session list item (without messages)."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, chat_session: ChatSession) -> "SessionItem":
        return cls(
            id=chat_session.id,
            title=chat_session.title,
            created_at=as_utc(chat_session.created_at),
            updated_at=as_utc(chat_session.updated_at),
        )


class SessionListResponse(ApiModel):
    """Response model for a user's sessions."""

    sessions: list[SessionItem]


class MessageItem(ApiModel):
    """Response model for a message."""

    id: int
    session_id: str | None
    role: str
    content: str
    timestamp: datetime
    language: str

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageItem":
        return cls(
            id=message.id,
            session_id=message.session_id,
            role=message.role,
            content=message.content,
            timestamp=as_utc(message.timestamp),
            language=message.language,
        )


class MessageListResponse(ApiModel):
    """Response model for a list of messages."""

    messages: list[MessageItem]

