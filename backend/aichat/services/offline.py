"""
offline.py — Canned replies for when no chat model can be reached.

The reply is picked by a keyword-based intent guess on the latest user
message and always ends with a note telling the user the assistant is in
fallback mode.
"""

import random

PROVIDER = "offline"

FALLBACK_NOTE = (
    "(Note: I'm currently operating in fallback mode because the AI service "
    "is unavailable)"
)

RESPONSES: dict[str, list[str]] = {
    "greeting": [
        "Hello! I'm a fallback AI assistant. How can I help you today?",
        "Hi there! I'm running in fallback mode due to API limitations. What can I assist you with?",
        "Greetings! I'm here to help, though I'm currently operating in a fallback capacity.",
    ],
    "farewell": [
        "Goodbye! Feel free to come back if you have more questions.",
        "Take care! Let me know if you need any more help later.",
        "Have a great day! I'll be here if you need assistance in the future.",
    ],
    "thank_you": [
        "You're welcome! Is there anything else I can help with?",
        "Happy to assist! Let me know if you have other questions.",
        "My pleasure! I'm here if you need more information.",
    ],
    "question": [
        "That's an interesting question. In fallback mode, I have limited capabilities, "
        "but I'd be happy to try my best to assist you.",
        "Great question! I'm currently operating in fallback mode due to API limitations, "
        "so my responses are somewhat limited.",
        "I wish I could provide a more detailed answer, but I'm currently in fallback mode "
        "due to API constraints.",
    ],
    "default": [
        "I understand you're looking for information. Currently, I'm operating in fallback "
        "mode due to API limitations.",
        "I appreciate your message. Right now, I'm running in a fallback capacity since the "
        "main AI service is unavailable.",
        "Thank you for your input. I'm currently in fallback mode, which means my responses "
        "are more limited than usual.",
    ],
}

_QUESTION_WORDS = ("?", "what", "how", "why", "when", "where")


def determine_intent(content: str) -> str:
    lower = content.lower().strip()

    if "hello" in lower or "hi " in lower or "hey" in lower or lower == "hi":
        return "greeting"
    if "bye" in lower or "goodbye" in lower or "see you" in lower:
        return "farewell"
    if "thank" in lower or "appreciate" in lower:
        return "thank_you"
    if any(word in lower for word in _QUESTION_WORDS):
        return "question"
    return "default"


def generate_fallback_response(history: list[dict], rng: random.Random | None = None) -> str:
    """
    Build a canned reply for the most recent user message in history.

    With no user message at all, the first greeting is returned as-is.
    """
    last_user = next((m for m in reversed(history) if m["role"] == "user"), None)
    if last_user is None:
        return RESPONSES["greeting"][0]

    choice = (rng or random).choice(RESPONSES[determine_intent(last_user["content"])])
    return f"{choice}\n\n{FALLBACK_NOTE}"
