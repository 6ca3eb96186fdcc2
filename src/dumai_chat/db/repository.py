"""Repository layer for database operations.

Provides the identity registry, session store and message log on top of
SQLModel. The default database is an in-memory SQLite database that lives
as long as its ``Database`` object.
"""

import threading
from datetime import datetime
from pathlib import Path

from sqlalchemy import event, func
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from dumai_chat.core.logging import get_logger
from dumai_chat.db.models import (
    PLACEHOLDER_PASSWORD,
    UNSET_LANGUAGE,
    ChatMessage,
    ChatSession,
    MessageRole,
    User,
    as_utc,
    generate_id,
    utc_now,
)

logger = get_logger(__name__)

MESSAGE_ROLES = ("user", "assistant")


def _enable_sqlite_fk(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _write(session: Session, record: SQLModel, autocommit: bool) -> None:
    """Stage a record and reload it, committing only when asked to."""
    session.add(record)
    if autocommit:
        session.commit()
    else:
        session.flush()
    session.refresh(record)


class Database:
    """Owns the engine for one set of stores.

    Construct once at process start (or once per test) and pass it to
    whatever needs a database session.
    """

    def __init__(self, url: str = "sqlite://", echo: bool = False) -> None:
        """Initialize the database handle without connecting.

        Args:
            url: SQLAlchemy database URL. ``sqlite://`` is in-memory.
            echo: Log emitted SQL statements
        """
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._engine_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        """Get or create the database engine (thread-safe)."""
        if self._engine is None:
            with self._engine_lock:
                # Double-check locking pattern
                if self._engine is None:
                    self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        url = make_url(self.url)
        kwargs: dict = {"echo": self.echo}

        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # Every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(self.url, **kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_fk)
        return engine

    def init(self) -> None:
        """Initialize the database by creating all tables."""
        SQLModel.metadata.create_all(self.engine)
        logger.info("database_initialized", url=self.url)

    def session(self) -> Session:
        """Open a new database session.

        Loaded objects stay readable after commit and after the session
        is closed.
        """
        return Session(self.engine, expire_on_commit=False)

    def dispose(self) -> None:
        """Release all pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


class UserRepository:
    """Identity registry: display names mapped to stable numeric ids."""

    def __init__(self, session: Session):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
        """
        self.session = session

    def get(self, user_id: int) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user ID

        Returns:
            User if found, None otherwise
        """
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        """Get a user by exact, case-sensitive username.

        Args:
            username: The display name

        Returns:
            User if found, None otherwise
        """
        statement = select(User).where(User.username == username)
        return self.session.exec(statement).first()

    def create_or_get(
        self, username: str, password: str = PLACEHOLDER_PASSWORD
    ) -> User:
        """Return the user with this username, creating it if absent.

        An existing user is returned unchanged; the password is not updated.

        Args:
            username: The display name
            password: Credential placeholder stored for new users only

        Returns:
            The existing or newly created User
        """
        existing = self.get_by_username(username)
        if existing is not None:
            return existing

        user = User(username=username, password=password)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request registered the same name first
            self.session.rollback()
            winner = self.get_by_username(username)
            if winner is None:
                raise
            return winner

        self.session.refresh(user)
        logger.info("user_created", user_id=user.id, username=username)
        return user


class ChatSessionRepository:
    """Session store: conversation threads owned by one user each."""

    def __init__(self, session: Session, autocommit: bool = True):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
            autocommit: Commit after each write. When False, writes are only
                flushed and the caller commits.
        """
        self.session = session
        self.autocommit = autocommit

    def create(
        self,
        user_id: int,
        title: str,
        personality: str,
        title_is_default: bool = True,
    ) -> ChatSession:
        """Create a new chat session.

        Args:
            user_id: Owning user ID
            title: Initial title, stored verbatim
            personality: Personality hint, stored verbatim
            title_is_default: Whether ``title`` is still the placeholder

        Returns:
            Created ChatSession instance
        """
        now = utc_now()
        chat_session = ChatSession(
            id=generate_id(),
            user_id=user_id,
            title=title,
            title_is_default=title_is_default,
            personality=personality,
            created_at=now,
            updated_at=now,
        )
        _write(self.session, chat_session, self.autocommit)
        return chat_session

    def get(self, session_id: str) -> ChatSession | None:
        """Get a chat session by ID.

        Args:
            session_id: The session ID

        Returns:
            ChatSession if found, None otherwise
        """
        return self.session.get(ChatSession, session_id)

    def list_by_owner(self, user_id: int) -> list[ChatSession]:
        """List a user's sessions, most recently updated first.

        Ties on updated_at fall back to the most recently created first.

        Args:
            user_id: The owning user ID

        Returns:
            List of ChatSession instances
        """
        statement = (
            select(ChatSession)
            .where(ChatSession.user_id == user_id)
            .order_by(
                ChatSession.updated_at.desc(),
                ChatSession.created_at.desc(),
                ChatSession.id,
            )
        )
        return list(self.session.exec(statement).all())

    def rename_title(self, session_id: str, title: str) -> ChatSession | None:
        """Overwrite the title and refresh updated_at.

        Args:
            session_id: The session ID
            title: New title

        Returns:
            Updated ChatSession if found, None otherwise
        """
        chat_session = self.get(session_id)
        if chat_session is None:
            return None

        chat_session.title = title
        chat_session.title_is_default = False
        return self._save_refreshed(chat_session)

    def touch(self, session_id: str) -> ChatSession | None:
        """Update the updated_at timestamp of a session.

        Args:
            session_id: The session ID

        Returns:
            Updated ChatSession if found, None otherwise
        """
        chat_session = self.get(session_id)
        if chat_session is None:
            return None
        return self._save_refreshed(chat_session)

    def _save_refreshed(self, chat_session: ChatSession) -> ChatSession:
        # updated_at never moves backwards, even if the wall clock does
        chat_session.updated_at = max(utc_now(), as_utc(chat_session.updated_at))

        _write(self.session, chat_session, self.autocommit)
        return chat_session


class MessageRepository:
    """Message log: ordered messages labelled with a session id."""

    def __init__(self, session: Session, autocommit: bool = True):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
            autocommit: Commit after each write. When False, writes are only
                flushed and the caller commits.
        """
        self.session = session
        self.autocommit = autocommit

    def append(
        self,
        session_id: str | None,
        role: MessageRole,
        content: str,
        language: str = UNSET_LANGUAGE,
    ) -> ChatMessage:
        """Store a new message and refresh its session's updated_at.

        Args:
            session_id: Session the message belongs to
            role: Message role (user or assistant)
            content: Message text content
            language: Detected language tag

        Returns:
            Created ChatMessage instance

        Raises:
            ValueError: If role is not "user" or "assistant"
        """
        if role not in MESSAGE_ROLES:
            raise ValueError(f"Invalid message role: {role!r}")

        message = ChatMessage(
            session_id=session_id,
            role=role,
            content=content,
            language=language,
            timestamp=self._next_timestamp(session_id),
        )
        _write(self.session, message, self.autocommit)

        # Update session's updated_at (no-op for transient sessions)
        if session_id is not None:
            ChatSessionRepository(self.session, self.autocommit).touch(session_id)

        return message

    def _next_timestamp(self, session_id: str | None) -> datetime:
        """Current time, but never earlier than the session's latest message."""
        now = utc_now()
        if session_id is None:
            return now

        statement = select(func.max(ChatMessage.timestamp)).where(
            ChatMessage.session_id == session_id
        )
        latest = self.session.exec(statement).first()
        if latest is None:
            return now
        return max(now, as_utc(latest))

    def get(self, message_id: int) -> ChatMessage | None:
        """Get a message by ID.

        Args:
            message_id: The message ID

        Returns:
            ChatMessage if found, None otherwise
        """
        return self.session.get(ChatMessage, message_id)

    def list_by_session(self, session_id: str) -> list[ChatMessage]:
        """List messages for a session in chronological order.

        Messages are ordered by timestamp ascending, ties broken by id.

        Args:
            session_id: The session ID

        Returns:
            List of ChatMessage instances
        """
        statement = (
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
        )
        return list(self.session.exec(statement).all())

    def list_all(self) -> list[ChatMessage]:
        """List every stored message ordered by id (legacy global log)."""
        statement = select(ChatMessage).order_by(ChatMessage.id.asc())
        return list(self.session.exec(statement).all())
