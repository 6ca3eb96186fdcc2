"""Session title derivation."""

DEFAULT_TITLE = "New Chat"
TITLE_MAX_LENGTH = 40
ELLIPSIS = "..."


def derive_title(
    text: str,
    default_title: str = DEFAULT_TITLE,
    max_length: int = TITLE_MAX_LENGTH,
) -> str:
    """Derive a session title from the first user message.

    Uses the first line, cut after the first question mark, capped at
    ``max_length`` characters with a trailing ellipsis when shortened.
    Empty or whitespace-only text yields ``default_title``.
    """
    stripped = text.strip()
    if not stripped:
        return default_title

    title = stripped.splitlines()[0].strip()
    question_mark = title.find("?")
    if question_mark != -1:
        title = title[: question_mark + 1]

    if len(title) > max_length:
        title = title[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS
    return title
