"""Reply generator layer for DumAI chat."""

from dumai_chat.llm.base import BaseReplyGenerator
from dumai_chat.llm.language import detect_language
from dumai_chat.llm.openai_compat import OpenAICompatReplyGenerator

__all__ = ["BaseReplyGenerator", "OpenAICompatReplyGenerator", "detect_language"]
