"""
tables.py — SQLAlchemy ORM models for users, conversations and messages.

TABLE RELATIONSHIPS:
  users ──< conversations         (a user owns many conversations; anonymous
                                   conversations have user_id = NULL)
  conversations ──< messages      (one conversation has many messages)

IDENTIFIERS:
  users.id and messages.id are auto-incrementing integers.
  conversations.id is a short random url-safe string generated in Python,
  so the frontend can put it in a URL; the built-in conversation uses the
  fixed id "default".

TIMESTAMPS:
  created_at is filled in Python (not by a server default) so the value is
  available on the object straight after flush without another SELECT.
  Values are UTC; SQLite returns them without tzinfo, so to_dict() adds it.
"""

import secrets
from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import (
    INTEGER,
    JSON,
    TEXT,
    VARCHAR,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aichat.core.database import Base

DEFAULT_CONVERSATION_ID = "default"
DEFAULT_CONVERSATION_TITLE = "New Conversation"
USERNAME_MAX_LENGTH = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime) -> str:
    # SQLite hands timestamps back naive; they were stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def new_conversation_id() -> str:
    """21-character url-safe id (same length as a nanoid)."""
    return secrets.token_urlsafe(16)[:21]


class User(Base):
    """
    An account.  Profile fields are optional and feed the prompt context
    built by services/prompt.py.

    password_hash – bcrypt hash (see services/auth.py); for identity-provider logins this is the
                    hash of the provider's user id
    interests     – JSON list of strings
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(VARCHAR(USERNAME_MAX_LENGTH), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(VARCHAR(255), nullable=False)

    full_name: Mapped[str | None] = mapped_column(VARCHAR(255), nullable=True)
    location: Mapped[str | None] = mapped_column(VARCHAR(255), nullable=True)
    profession: Mapped[str | None] = mapped_column(VARCHAR(255), nullable=True)
    pets: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    system_context: Mapped[str | None] = mapped_column(TEXT, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation", back_populates="user", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        """Public representation: never includes password_hash."""
        return {
            "id":            self.id,
            "username":      self.username,
            "fullName":      self.full_name,
            "location":      self.location,
            "profession":    self.profession,
            "pets":          self.pets,
            "interests":     list(self.interests or []),
            "systemContext": self.system_context,
            "createdAt":     _isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id} {self.username}>"


class Conversation(Base):
    """
    A chat thread.  personality selects an extra style line in the system
    prompt (see services/prompt.py).
    """
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(VARCHAR(64), primary_key=True, default=new_conversation_id)
    title: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, default=DEFAULT_CONVERSATION_TITLE)
    personality: Mapped[str] = mapped_column(VARCHAR(20), nullable=False, default="default")
    user_id: Mapped[int | None] = mapped_column(
        INTEGER, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    user: Mapped[Optional["User"]] = relationship("User", back_populates="conversations")
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan",
        order_by="Message.id"
    )

    def to_dict(self) -> dict:
        return {
            "id":          self.id,
            "title":       self.title,
            "personality": self.personality,
            "createdAt":   _isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Conversation {self.id} \"{self.title}\">"


class Message(Base):
    """
    A single turn in a conversation.

    provider – which backend produced an assistant message
               ("openai" | "gemini" | "offline"); NULL for user messages
    """
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(
        VARCHAR(64),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(VARCHAR(10), nullable=False)  # 'user' | 'assistant' | 'system'
    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    provider: Mapped[str | None] = mapped_column(VARCHAR(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")

    def to_dict(self) -> dict:
        return {
            "id":             self.id,
            "conversationId": self.conversation_id,
            "role":           self.role,
            "content":        self.content,
            "provider":       self.provider,
            "createdAt":      _isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        snippet = self.content[:60].replace("\n", " ")
        return f"<Message [{self.role}] \"{snippet}…\">"
