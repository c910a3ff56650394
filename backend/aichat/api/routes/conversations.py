"""
conversations.py — CRUD routes for conversations and their message history.

GET    /api/conversations                   – list, newest first
POST   /api/conversations                   – create
GET    /api/conversations/{id}/messages     – message history, oldest first
DELETE /api/conversations/{id}              – delete with its messages
PATCH  /api/conversations/{id}/personality  – change the assistant's style

VISIBILITY:
  Conversations created while logged in belong to that user and are hidden
  from everyone else (404, same as a missing id).  Anonymous conversations,
  including the built-in "default" one, are visible to everybody.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aichat.api.deps import get_optional_user
from aichat.core.database import get_db
from aichat.models.tables import (
    DEFAULT_CONVERSATION_ID,
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    Message,
    User,
)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])

Personality = Literal["default", "professional", "friendly", "creative", "concise"]

NOT_FOUND = "Conversation not found."


# ------------------------------------------------------------------ #
# Request schemas
# ------------------------------------------------------------------ #
class CreateConversationRequest(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    personality: Personality = "default"


class UpdatePersonalityRequest(BaseModel):
    personality: Personality


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #
async def get_visible_conversation(
    db: AsyncSession,
    conversation_id: str,
    user: User | None,
) -> Conversation | None:
    """Load a conversation the requester may see, or None."""
    conversation = await db.get(Conversation, conversation_id)
    if conversation is None:
        return None
    if conversation.user_id is not None and (user is None or user.id != conversation.user_id):
        return None
    return conversation


# ------------------------------------------------------------------ #
# Routes
# ------------------------------------------------------------------ #
@router.get("")
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    """Anonymous conversations plus, when logged in, the user's own."""
    visible = Conversation.user_id.is_(None)
    if user is not None:
        visible = or_(visible, Conversation.user_id == user.id)

    result = await db.execute(
        select(Conversation)
        .where(visible)
        .order_by(Conversation.created_at.desc(), Conversation.id)
    )
    return [c.to_dict() for c in result.scalars().all()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    body: CreateConversationRequest,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    title = (body.title or "").strip() or DEFAULT_CONVERSATION_TITLE

    conversation = Conversation(
        title=title,
        personality=body.personality,
        user_id=user.id if user is not None else None,
    )
    db.add(conversation)
    await db.flush()

    return conversation.to_dict()


@router.get("/{conversation_id}/messages")
async def get_messages(
    conversation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    conversation = await get_visible_conversation(db, conversation_id, user)
    if conversation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
    )
    return [m.to_dict() for m in result.scalars().all()]


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    conversation = await get_visible_conversation(db, conversation_id, user)
    if conversation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    if conversation.id == DEFAULT_CONVERSATION_ID:
        raise HTTPException(status_code=400, detail="The default conversation cannot be deleted.")

    # Bulk deletes: SQLite does not enforce ON DELETE CASCADE unless asked to
    await db.execute(delete(Message).where(Message.conversation_id == conversation_id))
    await db.execute(delete(Conversation).where(Conversation.id == conversation_id))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{conversation_id}/personality")
async def update_personality(
    conversation_id: str,
    body: UpdatePersonalityRequest,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    conversation = await get_visible_conversation(db, conversation_id, user)
    if conversation is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    conversation.personality = body.personality
    await db.flush()

    return conversation.to_dict()
