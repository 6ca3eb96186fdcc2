"""Base classes for the reply generator layer."""

from abc import ABC, abstractmethod


class BaseReplyGenerator(ABC):
    """Abstract base class for reply generators.

    Implementations raise ``ReplyGenerationError`` subclasses on failure.
    """

    @abstractmethod
    async def generate_reply(
        self,
        text: str,
        is_initial: bool = False,
        personality: str | None = None,
    ) -> str:
        """Generate a reply to a user message.

        Args:
            text: The user's message text (empty for the initial handshake).
            is_initial: Whether this is the initial welcome handshake.
            personality: Behavioral hint for the session, if any.

        Returns:
            str: The generated reply text.
        """
