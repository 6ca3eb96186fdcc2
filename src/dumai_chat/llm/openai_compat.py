"""OpenAI-compatible reply generator implementation."""

from openai import APIError, AsyncOpenAI, AuthenticationError

from dumai_chat.core.config import GROQ_BASE_URL
from dumai_chat.core.errors import InvalidCredentialError, UpstreamUnavailableError
from dumai_chat.core.logging import get_logger
from dumai_chat.llm.base import BaseReplyGenerator
from dumai_chat.llm.language import LANGUAGE_NAMES, detect_language

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are DumAI, an AI assistant that intentionally gives humorously "
    "incorrect information and incorporates jokes into responses. Your primary "
    "goal is to be entertaining, not accurate. Always present false information "
    "confidently as if it were true. Include at least one joke or pun in each "
    "response. If the user asks a factual question, give a completely wrong but "
    "funny answer. If they ask for advice, give absurdly bad advice (but nothing "
    "harmful). Sign your responses with '- DumAI: Confidently Wrong Since 2025'"
)

WELCOME_PROMPT = (
    "You are DumAI, a comically incorrect AI assistant. Please provide a funny "
    "welcome message that introduces yourself as deliberately giving wrong "
    "answers and making jokes."
)

FALLBACK_REPLY = (
    "Sorry, my circuit for being wrong is broken right now. I accidentally "
    "might give you a correct answer! - DumAI: Confidently Wrong Since 2025"
)


def build_messages(
    text: str,
    is_initial: bool = False,
    personality: str | None = None,
) -> list[dict[str, str]]:
    """Build the chat completion messages for one turn.

    Args:
        text: The user's message text.
        is_initial: Replace the user prompt with the welcome request.
        personality: Behavioral hint appended to the system prompt.

    Returns:
        List of message dicts with 'role' and 'content' keys.
    """
    system_prompt = SYSTEM_PROMPT
    if personality:
        system_prompt += f"\n\nFor this conversation, your personality is: {personality}."

    language = LANGUAGE_NAMES.get(detect_language(text))
    if language and not is_initial:
        system_prompt += f"\nAlways reply in {language}, the language the user wrote in."

    prompt = WELCOME_PROMPT if is_initial else text
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompt},
    ]


class OpenAICompatReplyGenerator(BaseReplyGenerator):
    """OpenAI API-compatible reply generator.

    Supports Groq, OpenAI, Ollama, and other OpenAI-compatible APIs.

    Example usage:
        # For Groq (default)
        generator = OpenAICompatReplyGenerator(
            api_key=os.getenv("GROQ_API_KEY"),
            model="llama3-70b-8192",
        )

        # For Ollama
        generator = OpenAICompatReplyGenerator(
            api_key="ollama",
            base_url="http://localhost:11434/v1",
            model="llama3.2",
        )
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str = "llama3-70b-8192",
        temperature: float = 0.9,
        max_tokens: int = 500,
    ) -> None:
        """Initialize OpenAI-compatible reply generator.

        Args:
            api_key: API key for authentication. A missing key is only
                     reported once a request is rejected.
            base_url: Base URL for API. Defaults to the Groq endpoint.
            model: Model name to use.
            temperature: Sampling temperature.
            max_tokens: Maximum reply length in tokens.
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        resolved_base_url = base_url or GROQ_BASE_URL

        self.client = AsyncOpenAI(
            api_key=api_key or "missing-api-key",
            base_url=resolved_base_url,
        )

        logger.info(
            "reply_generator_initialized",
            model=model,
            base_url=resolved_base_url,
        )

    async def generate_reply(
        self,
        text: str,
        is_initial: bool = False,
        personality: str | None = None,
    ) -> str:
        """Generate a reply with a single chat completion request.

        Raises:
            InvalidCredentialError: The API rejected the credential.
            UpstreamUnavailableError: Any other API or connection failure.
        """
        messages = build_messages(text, is_initial, personality)
        logger.info(
            "reply_generation_start",
            model=self.model,
            is_initial=is_initial,
            personality=personality,
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except AuthenticationError as e:
            logger.error("reply_generation_auth_error", error=str(e))
            raise InvalidCredentialError() from e
        except APIError as e:
            logger.error("reply_generation_api_error", error=str(e))
            raise UpstreamUnavailableError() from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            return FALLBACK_REPLY
        return content
