"""
chat_router.py — Decide which backend answers a chat turn.

ORDER OF ATTEMPTS:
  1. OpenAI (primary)      – if a well-formed API key is configured
  2. Gemini (fallback)     – if GOOGLE_API_KEY is set; also used when the
                             primary call raised
  3. Offline canned reply  – if OFFLINE_FALLBACK_ENABLED

If nothing produced a reply, the first provider error is re-raised (the
primary's error text is the most useful one to show).  If no provider was
even configured, a ProviderNotConfigured is raised.

HISTORY:
  Client-supplied "system" messages are dropped (the server owns the
  system prompt) and only the last MAX_HISTORY_MESSAGES turns are kept.
"""

import logging
from dataclasses import dataclass

from aichat.core.config import settings
from aichat.core.errors import ProviderError, ProviderNotConfigured
from aichat.models.tables import User
from aichat.services import gemini, llm, media, offline
from aichat.services.prompt import build_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    content: str
    provider: str


def prepare_history(messages: list[dict], limit: int) -> list[dict]:
    """Drop system turns and keep the newest `limit` user/assistant turns."""
    turns = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m["role"] in ("user", "assistant")
    ]
    if limit > 0:
        turns = turns[-limit:]
    return turns


async def generate_reply(
    messages: list[dict],
    personality: str = "default",
    user: User | None = None,
) -> ChatReply:
    """
    Produce the assistant's reply for one chat turn.

    Args:
        messages:    Full client history, ending with the new user message.
        personality: The conversation's personality key.
        user:        Logged-in user (for profile context) or None.

    Raises:
        ProviderError: when no backend could answer.
    """
    system_prompt = build_system_prompt(personality, user)
    history = prepare_history(messages, settings.MAX_HISTORY_MESSAGES)
    errors: list[ProviderError] = []

    if llm.is_available():
        try:
            content = await llm.generate_chat_response(system_prompt, history)
            return ChatReply(content=content, provider=llm.PROVIDER)
        except ProviderError as exc:
            logger.warning("Primary model failed, trying fallback: %s", exc.message)
            errors.append(exc)

    if gemini.is_available():
        try:
            content = await gemini.generate_chat_response(system_prompt, history)
            return ChatReply(content=content, provider=gemini.PROVIDER)
        except ProviderError as exc:
            logger.warning("Fallback model failed: %s", exc.message)
            errors.append(exc)

    if settings.OFFLINE_FALLBACK_ENABLED:
        logger.info("Answering with an offline canned reply")
        return ChatReply(
            content=offline.generate_fallback_response(history),
            provider=offline.PROVIDER,
        )

    if errors:
        raise errors[0]
    raise ProviderNotConfigured("chat", "No AI chat provider is configured.")


def active_provider() -> str | None:
    """The backend generate_reply() would try first, or None."""
    if llm.is_available():
        return llm.PROVIDER
    if gemini.is_available():
        return gemini.PROVIDER
    if settings.OFFLINE_FALLBACK_ENABLED:
        return offline.PROVIDER
    return None


def model_status() -> dict:
    """Configuration-based availability of every backend (no network calls)."""
    return {
        "primary": {
            "provider":  llm.PROVIDER,
            "model":     settings.OPENAI_MODEL,
            "available": llm.is_available(),
        },
        "fallback": {
            "provider":  gemini.PROVIDER,
            "model":     settings.GEMINI_MODEL,
            "available": gemini.is_available(),
        },
        "offline_fallback": settings.OFFLINE_FALLBACK_ENABLED,
        "image": {
            "model":     settings.IMAGE_MODEL,
            "available": media.is_available(),
        },
        "video": {
            "model":     settings.VIDEO_MODEL,
            "available": media.is_available(),
        },
        "active": active_provider(),
    }
