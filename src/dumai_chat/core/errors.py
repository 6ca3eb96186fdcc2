"""Error taxonomy for chat turn processing.

Storage lookups signal absence with ``None``; these exceptions are raised
only where the orchestrator or the reply generator decides a condition is
fatal for the current request.
"""


class ChatError(Exception):
    """Base class for errors carrying a user-facing message."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ChatError):
    """A referenced identity or session does not exist."""

    default_message = "Not found"


class ReplyGenerationError(ChatError):
    """The reply generator failed to produce a response."""

    default_message = (
        "Failed to get a response from DumAI. Even my errors are wrong! "
        "Please try again later."
    )


class UpstreamUnavailableError(ReplyGenerationError):
    """The upstream language-model API is unreachable or erroring."""


class InvalidCredentialError(ReplyGenerationError):
    """The upstream language-model API rejected the configured credential."""

    default_message = (
        "DumAI could not authenticate with its language model. "
        "Please check the API key."
    )


class SessionResolutionError(ChatError):
    """No session id could be established for a turn."""

    default_message = "Could not establish a chat session for this message."
