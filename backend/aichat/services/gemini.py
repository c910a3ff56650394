"""
gemini.py — Fallback chat model: Google Gemini.

Used by chat_router.py when the primary OpenAI model is not configured or
its call fails.

HISTORY FORMAT:
  google-generativeai uses "model" (not "assistant") as the role name and
  wants {"role": ..., "parts": [...]} dicts.  The system prompt changes per
  conversation (personality + user profile), so a GenerativeModel is built
  per call with that prompt as its system_instruction.
"""

import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from aichat.core.config import settings
from aichat.core.errors import ProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)

PROVIDER = "gemini"

_configured_key: str | None = None


def is_available() -> bool:
    return bool(settings.GOOGLE_API_KEY.strip())


def _configure() -> None:
    """Configure the Google AI client once per distinct key."""
    global _configured_key
    if _configured_key != settings.GOOGLE_API_KEY:
        genai.configure(api_key=settings.GOOGLE_API_KEY)
        _configured_key = settings.GOOGLE_API_KEY


def translate_error(exc: google_exceptions.GoogleAPIError) -> ProviderError:
    """Map a google-api-core exception to a ProviderError with the right status."""
    if isinstance(exc, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return ProviderError(PROVIDER, "Gemini quota or rate limit exceeded. Please try again later.",
                             status_code=429)
    if isinstance(exc, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded)):
        return ProviderError(PROVIDER, "Gemini is unreachable right now. Please try again later.",
                             status_code=503)
    return ProviderError(PROVIDER, f"Gemini API error: {exc}", status_code=502)


def to_gemini_contents(history: list[dict]) -> list[dict]:
    """Convert OpenAI-style messages to Gemini Content dicts."""
    contents = []
    for msg in history:
        gemini_role = "model" if msg["role"] == "assistant" else "user"
        contents.append({"role": gemini_role, "parts": [msg["content"]]})
    return contents


async def generate_chat_response(system_prompt: str, history: list[dict]) -> str:
    """
    Call Gemini with the system prompt and conversation history.

    Raises:
        ProviderNotConfigured: if GOOGLE_API_KEY is empty.
        ProviderError:         on API failures or an empty/blocked reply.
    """
    if not is_available():
        raise ProviderNotConfigured(PROVIDER, "Gemini API key is missing.")

    _configure()
    model = genai.GenerativeModel(
        model_name=settings.GEMINI_MODEL,
        system_instruction=system_prompt,
    )

    try:
        response = await model.generate_content_async(contents=to_gemini_contents(history))
    except google_exceptions.GoogleAPIError as exc:
        logger.warning("Gemini request failed: %s", exc)
        raise translate_error(exc) from exc

    # .text raises ValueError when the candidate was blocked or has no parts
    try:
        text = response.text
    except ValueError as exc:
        raise ProviderError(PROVIDER, "Gemini returned no usable text.") from exc

    if not text:
        raise ProviderError(PROVIDER, "Gemini returned an empty response.")
    return text
