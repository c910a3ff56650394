"""
prompt.py — System prompt assembly.

The system prompt sent to either chat model is built from up to three
blocks, separated by blank lines:

  1. BASE_INSTRUCTION        – always present
  2. personality style line  – omitted for the "default" personality
  3. user-profile context    – only for logged-in users with at least one
                               profile field filled in; the user's own
                               free-form instructions (system_context) go
                               last, verbatim
"""

from aichat.models.tables import User

BASE_INSTRUCTION = (
    "You are a helpful AI assistant. Provide concise and accurate responses to user queries. "
    "Your goal is to be informative and educational. Use clear language and provide examples "
    "where appropriate. Always be respectful and considerate in your responses."
)

PERSONALITY_STYLES = {
    "default":      "",
    "professional": "Adopt a formal, professional tone. Be precise and avoid casual language.",
    "friendly":     "Adopt a warm, friendly and conversational tone. Feel free to be encouraging.",
    "creative":     "Be imaginative and playful. Offer original ideas, analogies and examples.",
    "concise":      "Keep every answer as short as possible. Prefer bullet points over prose.",
}


def build_profile_context(user: User | None) -> str:
    """Describe the user to the model, or return "" when there is nothing to say."""
    if user is None:
        return ""

    lines = []
    if user.full_name:
        lines.append(f"The user's name is {user.full_name}.")
    if user.location:
        lines.append(f"They live in {user.location}.")
    if user.profession:
        lines.append(f"They work as {user.profession}.")
    interests = [i.strip() for i in (user.interests or []) if i and i.strip()]
    if interests:
        lines.append(f"Their interests include {', '.join(interests)}.")
    if user.pets:
        lines.append(f"Pets: {user.pets}.")

    context = ""
    if lines:
        context = "About the user you are talking to:\n" + "\n".join(lines)
    if user.system_context and user.system_context.strip():
        instructions = "Additional instructions from the user:\n" + user.system_context.strip()
        context = f"{context}\n\n{instructions}" if context else instructions
    return context


def build_system_prompt(personality: str = "default", user: User | None = None) -> str:
    blocks = [BASE_INSTRUCTION]

    style = PERSONALITY_STYLES.get(personality, "")
    if style:
        blocks.append(style)

    profile = build_profile_context(user)
    if profile:
        blocks.append(profile)

    return "\n\n".join(blocks)
