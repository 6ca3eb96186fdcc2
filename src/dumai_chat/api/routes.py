"""HTTP routes for chat turns, users, sessions and messages."""

from fastapi import APIRouter, Depends, Request

from dumai_chat.api.schemas import (
    ChatRequest,
    ChatResponse,
    MessageItem,
    MessageListResponse,
    SessionItem,
    SessionListResponse,
    UserCreateRequest,
    UserItem,
    UserResponse,
)
from dumai_chat.chat import ChatOrchestrator, TurnRequest
from dumai_chat.db import PLACEHOLDER_PASSWORD

router = APIRouter(prefix="/api")


def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Return the orchestrator created during application startup."""
    return request.app.state.orchestrator


@router.post("/chat")
async def chat(
    body: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """Process one chat turn and return the reply with its session id."""
    result = await orchestrator.handle_turn(
        TurnRequest(
            message=body.message or "",
            is_initial=bool(body.initial),
            session_id=body.session_id,
            user_id=body.user_id,
            username=body.username,
        )
    )
    return ChatResponse(
        message=result.message,
        session_id=result.session_id,
        language=result.language,
    )


@router.post("/users")
async def create_user(
    body: UserCreateRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> UserResponse:
    """Register a display name; repeated calls return the same user."""
    user = orchestrator.register_user(body.username, body.password or PLACEHOLDER_PASSWORD)
    return UserResponse(user=UserItem.from_user(user))


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> UserResponse:
    """Get a user by ID.

    Raises:
        NotFoundError: If the user does not exist (404).
    """
    user = orchestrator.get_user(user_id)
    return UserResponse(user=UserItem.from_user(user))


@router.get("/users/{user_id}/sessions")
async def list_sessions(
    user_id: int,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> SessionListResponse:
    """List a user's sessions, most recently updated first."""
    sessions = orchestrator.list_sessions(user_id)
    return SessionListResponse(
        sessions=[SessionItem.from_session(s) for s in sessions]
    )


@router.get("/sessions/{session_id}/messages")
async def list_session_messages(
    session_id: str,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> MessageListResponse:
    """List a session's messages in chronological order."""
    messages = orchestrator.list_messages(session_id)
    return MessageListResponse(
        messages=[MessageItem.from_message(m) for m in messages]
    )


@router.get("/messages")
async def list_all_messages(
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> MessageListResponse:
    """List every stored message ordered by id (legacy global log)."""
    messages = orchestrator.list_all_messages()
    return MessageListResponse(
        messages=[MessageItem.from_message(m) for m in messages]
    )
