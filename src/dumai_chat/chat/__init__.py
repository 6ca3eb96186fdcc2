"""Chat session orchestration."""

from dumai_chat.chat.orchestrator import ChatOrchestrator, TurnRequest, TurnResult
from dumai_chat.chat.personality import PERSONALITIES, pick_personality
from dumai_chat.chat.titles import DEFAULT_TITLE, derive_title

__all__ = [
    "ChatOrchestrator",
    "TurnRequest",
    "TurnResult",
    "PERSONALITIES",
    "pick_personality",
    "DEFAULT_TITLE",
    "derive_title",
]
