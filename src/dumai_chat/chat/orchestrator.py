"""Session orchestrator for chat turns.

Resolves the identity and session for an incoming turn, asks the reply
generator for a response and persists the resulting messages. Nothing is
written for a turn whose reply could not be generated.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sqlmodel import Session

from dumai_chat.chat.personality import (
    PERSONALITIES,
    PersonalityPicker,
    pick_personality,
)
from dumai_chat.chat.titles import DEFAULT_TITLE, TITLE_MAX_LENGTH, derive_title
from dumai_chat.core.errors import (
    NotFoundError,
    ReplyGenerationError,
    SessionResolutionError,
)
from dumai_chat.core.logging import get_logger
from dumai_chat.db import (
    PLACEHOLDER_PASSWORD,
    ChatMessage,
    ChatSession,
    ChatSessionRepository,
    Database,
    MessageRepository,
    User,
    UserRepository,
)
from dumai_chat.db.models import generate_id
from dumai_chat.llm.base import BaseReplyGenerator
from dumai_chat.llm.language import detect_language

logger = get_logger(__name__)


@dataclass
class TurnRequest:
    """One inbound chat turn."""

    message: str = ""
    is_initial: bool = False
    session_id: str | None = None
    user_id: int | None = None
    username: str | None = None


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a successful turn."""

    message: str
    session_id: str
    language: str


@dataclass
class _TurnPlan:
    """Session decisions made before the reply is generated.

    ``session_id`` is None when a new owned session is created once the
    reply exists. ``transient`` sessions are never stored.
    """

    personality: str
    session_id: str | None = None
    owner_id: int | None = None
    title: str = DEFAULT_TITLE
    title_is_default: bool = True
    rename_to: str | None = None
    transient: bool = False


class ChatOrchestrator:
    """Entry point used by the request layer for turns and lookups."""

    def __init__(
        self,
        database: Database,
        reply_generator: BaseReplyGenerator,
        personality_picker: PersonalityPicker | None = None,
        personalities: Sequence[str] = PERSONALITIES,
        language_detector: Callable[[str], str] = detect_language,
        transient_id_factory: Callable[[], str] = generate_id,
        default_title: str = DEFAULT_TITLE,
        title_max_length: int = TITLE_MAX_LENGTH,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            database: Database holding the user, session and message stores.
            reply_generator: Produces the assistant reply for each turn.
            personality_picker: Chooses one entry from ``personalities``.
                Defaults to ``random.choice``.
            personalities: Catalog personalities are drawn from.
            language_detector: Maps message text to a language tag.
            transient_id_factory: Allocates ids for anonymous sessions.
            default_title: Placeholder title for new sessions.
            title_max_length: Maximum length of derived titles.
        """
        self.database = database
        self.reply_generator = reply_generator
        self.personality_picker = personality_picker
        self.personalities = personalities
        self.language_detector = language_detector
        self.transient_id_factory = transient_id_factory
        self.default_title = default_title
        self.title_max_length = title_max_length

    async def handle_turn(self, request: TurnRequest) -> TurnResult:
        """Process one chat turn.

        Raises:
            SessionResolutionError: No session id could be established.
            ReplyGenerationError: The reply generator failed; nothing was
                stored for this turn.
        """
        text = request.message or ""
        has_text = bool(text.strip())

        with self.database.session() as db:
            plan = self._resolve(db, request, text, has_text)

        language = self.language_detector(text)

        try:
            reply = await self.reply_generator.generate_reply(
                text, request.is_initial, plan.personality
            )
        except ReplyGenerationError as e:
            logger.warning(
                "reply_generation_failed",
                session_id=plan.session_id,
                error=e.message,
            )
            raise

        if not reply.strip():
            logger.warning("reply_generation_empty", session_id=plan.session_id)
            raise ReplyGenerationError()

        with self.database.session() as db:
            session_id = self._persist(
                db, plan, text, request.is_initial, has_text, reply, language
            )

        logger.info(
            "turn_completed",
            session_id=session_id,
            language=language,
            is_initial=request.is_initial,
            transient=plan.transient,
        )
        return TurnResult(message=reply, session_id=session_id, language=language)

    def _resolve(
        self, db: Session, request: TurnRequest, text: str, has_text: bool
    ) -> _TurnPlan:
        sessions = ChatSessionRepository(db)

        # 1. Existing session
        if request.session_id:
            existing = sessions.get(request.session_id)
            if existing is not None:
                plan = _TurnPlan(
                    personality=existing.personality,
                    session_id=existing.id,
                    owner_id=existing.user_id,
                )
                if has_text and not request.is_initial and existing.title_is_default:
                    plan.rename_to = self._derive_title(text)
                return plan
            logger.info("session_not_found", session_id=request.session_id)

        # 2. New session for a known or newly registered user
        owner = self._resolve_owner(db, request)
        if owner is not None:
            derived = has_text and not request.is_initial
            return _TurnPlan(
                personality=self._pick_personality(),
                owner_id=owner.id,
                title=self._derive_title(text) if derived else self.default_title,
                title_is_default=not derived,
            )

        # 3. Anonymous turn: label messages with an id no user owns
        transient_id = self.transient_id_factory()
        if not transient_id:
            # 4. Nothing to label this turn's messages with
            raise SessionResolutionError()
        logger.info("transient_session_allocated", session_id=transient_id)
        return _TurnPlan(
            personality=self._pick_personality(),
            session_id=transient_id,
            transient=True,
        )

    def _resolve_owner(self, db: Session, request: TurnRequest) -> User | None:
        users = UserRepository(db)
        if request.user_id is not None:
            user = users.get(request.user_id)
            if user is not None:
                return user
            logger.info("user_not_found", user_id=request.user_id)

        username = (request.username or "").strip()
        if username:
            return users.create_or_get(username, PLACEHOLDER_PASSWORD)
        return None

    def _persist(
        self,
        db: Session,
        plan: _TurnPlan,
        text: str,
        is_initial: bool,
        has_text: bool,
        reply: str,
        language: str,
    ) -> str:
        # Every write of the turn is committed together below
        sessions = ChatSessionRepository(db, autocommit=False)
        session_id = plan.session_id

        if session_id is None:
            created = sessions.create(
                plan.owner_id,
                plan.title,
                plan.personality,
                title_is_default=plan.title_is_default,
            )
            session_id = created.id
            logger.info(
                "session_created",
                session_id=session_id,
                user_id=plan.owner_id,
                title=created.title,
                personality=created.personality,
            )
        elif plan.rename_to is not None:
            # Another turn may have derived the title while the reply was pending
            current = sessions.get(session_id)
            if current is not None and current.title_is_default:
                sessions.rename_title(session_id, plan.rename_to)
                logger.info(
                    "session_title_derived",
                    session_id=session_id,
                    title=plan.rename_to,
                )

        messages = MessageRepository(db, autocommit=False)
        if not is_initial and has_text:
            messages.append(session_id, "user", text, language)
        messages.append(session_id, "assistant", reply, language)
        db.commit()
        return session_id

    def _derive_title(self, text: str) -> str:
        return derive_title(text, self.default_title, self.title_max_length)

    def _pick_personality(self) -> str:
        if self.personality_picker is None:
            return pick_personality(catalog=self.personalities)
        return pick_personality(self.personality_picker, self.personalities)

    def register_user(self, username: str, password: str = PLACEHOLDER_PASSWORD) -> User:
        """Create the user if absent; repeated calls return the same user."""
        with self.database.session() as db:
            return UserRepository(db).create_or_get(username, password)

    def get_user(self, user_id: int) -> User:
        """Get a user by ID.

        Raises:
            NotFoundError: If the user does not exist.
        """
        with self.database.session() as db:
            user = UserRepository(db).get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_sessions(self, user_id: int) -> list[ChatSession]:
        """List a user's sessions, most recently updated first.

        Raises:
            NotFoundError: If the user does not exist.
        """
        with self.database.session() as db:
            if UserRepository(db).get(user_id) is None:
                raise NotFoundError("User not found")
            return ChatSessionRepository(db).list_by_owner(user_id)

    def list_messages(self, session_id: str) -> list[ChatMessage]:
        """List a stored session's messages in chronological order.

        Raises:
            NotFoundError: If the session does not exist.
        """
        with self.database.session() as db:
            if ChatSessionRepository(db).get(session_id) is None:
                raise NotFoundError("Session not found")
            return MessageRepository(db).list_by_session(session_id)

    def list_all_messages(self) -> list[ChatMessage]:
        """List every stored message ordered by id."""
        with self.database.session() as db:
            return MessageRepository(db).list_all()
