"""
chat.py — POST /api/chat

One request = one chat turn:

  Client history (ending with the new user message)
    → validate + resolve the conversation
    → persist the user message
    → chat_router.generate_reply()  (OpenAI → Gemini → offline)
    → persist the assistant message (tagged with the provider that answered)
    → return {message, conversationId}

ERROR HANDLING:
  - 400 if the body is malformed or the last message is not from the user.
  - 404 if conversationId doesn't exist (or belongs to another user).
  - Provider failures propagate as ProviderError; main.py turns them into
    {"message": ...} with the provider's status code.  The user message is
    committed before the provider is called so it survives such failures.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from aichat.api.deps import get_optional_user
from aichat.api.routes.conversations import NOT_FOUND, get_visible_conversation
from aichat.core.database import get_db
from aichat.models.tables import DEFAULT_CONVERSATION_ID, Message, User
from aichat.services import chat_router

router = APIRouter(prefix="/api/chat", tags=["chat"])


# ------------------------------------------------------------------ #
# Request schemas
# ------------------------------------------------------------------ #
class ChatMessageIn(BaseModel):
    role:    Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """
    Body for POST /api/chat.

    messages       – the whole visible history, oldest first
    conversationId – defaults to the built-in "default" conversation
    """
    model_config = ConfigDict(populate_by_name=True)

    messages:        list[ChatMessageIn]
    conversation_id: str = Field(default=DEFAULT_CONVERSATION_ID, alias="conversationId")


# ------------------------------------------------------------------ #
# Route
# ------------------------------------------------------------------ #
@router.post("")
async def chat(
    body: ChatRequest,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    """
    Response shape:
    {
      "message": {"id": 7, "role": "assistant", "content": "...",
                  "provider": "openai", "conversationId": "...", "createdAt": "..."},
      "conversationId": "..."
    }
    """
    conversation = await get_visible_conversation(db, body.conversation_id, user)
    if conversation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    if not body.messages or body.messages[-1].role != "user":
        raise HTTPException(status_code=400, detail="Last message must be from the user.")

    user_message = body.messages[-1]
    db.add(Message(
        conversation_id=conversation.id,
        role="user",
        content=user_message.content,
    ))
    await db.commit()

    reply = await chat_router.generate_reply(
        messages=[m.model_dump() for m in body.messages],
        personality=conversation.personality,
        user=user,
    )

    assistant_message = Message(
        conversation_id=conversation.id,
        role="assistant",
        content=reply.content,
        provider=reply.provider,
    )
    db.add(assistant_message)
    await db.flush()   # assigns the id; get_db() commits on clean exit

    return {"message": assistant_message.to_dict(), "conversationId": conversation.id}
