"""
llm.py — Primary chat model: OpenAI chat completions.

PROMPT STRUCTURE:
  [system]  prompt assembled by services/prompt.py (base instruction +
            personality style + user-profile context)
  [history] the user/assistant turns sent by the client, already trimmed
            by chat_router.py

AVAILABILITY:
  is_available() is a configuration check only (no network call): the key
  must exist and look like an OpenAI secret key ("sk-..." and longer than
  20 chars).  Placeholder values in .env therefore never reach the API.

ERRORS:
  Every openai exception is translated into a ProviderError whose message
  is safe to show in the chat UI.  chat_router.py decides whether to fall
  back to Gemini.
"""

import logging

import openai
from openai import AsyncOpenAI

from aichat.core.config import settings
from aichat.core.errors import ProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)

PROVIDER = "openai"

EMPTY_REPLY = "I'm sorry, I couldn't generate a response."

_client: AsyncOpenAI | None = None


def is_available() -> bool:
    key = settings.OPENAI_API_KEY
    return bool(key and key.startswith("sk-") and len(key) > 20)


def _get_client() -> AsyncOpenAI:
    """Build the client on first use so a missing key doesn't break import."""
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


def translate_error(exc: Exception) -> ProviderError:
    """Map an openai SDK exception to a user-facing ProviderError."""
    if isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            return ProviderError(
                PROVIDER,
                "OpenAI API quota exceeded. Your account may need a valid payment "
                "method or has reached its limit.",
                status_code=429,
            )
        return ProviderError(PROVIDER, "Rate limit exceeded. Please try again later.", status_code=429)
    if isinstance(exc, openai.AuthenticationError):
        return ProviderError(PROVIDER, "API key is invalid or expired.", status_code=502)
    if isinstance(exc, openai.APIConnectionError):
        return ProviderError(
            PROVIDER,
            "No response received from OpenAI. Please check your internet connection.",
            status_code=503,
        )
    if isinstance(exc, openai.APIStatusError):
        return ProviderError(PROVIDER, f"OpenAI API error: {exc.message}", status_code=502)
    return ProviderError(PROVIDER, f"Error: {exc}", status_code=500)


async def generate_chat_response(system_prompt: str, history: list[dict]) -> str:
    """
    Call the OpenAI chat completions API.

    Args:
        system_prompt: Full system instruction for this turn.
        history:       [{"role": "user"|"assistant", "content": "..."}, ...],
                       oldest first, ending with the user's new message.

    Returns:
        The assistant's reply text.

    Raises:
        ProviderNotConfigured: if no usable API key is set.
        ProviderError:         on any API failure.
    """
    if not is_available():
        raise ProviderNotConfigured(PROVIDER, "OpenAI API key is missing or malformed.")

    messages = [{"role": "system", "content": system_prompt}, *history]

    try:
        response = await _get_client().chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=messages,
            temperature=settings.OPENAI_TEMPERATURE,
            max_tokens=settings.OPENAI_MAX_TOKENS,
        )
    except openai.OpenAIError as exc:
        logger.warning("OpenAI request failed: %s", exc)
        raise translate_error(exc) from exc

    return response.choices[0].message.content or EMPTY_REPLY
