"""
Message SQLModel for Gemini Chat

Stores user messages and AI replies within chatrooms.

An AI message is created as a placeholder (status ``pending``) in the same
commit as the user message it answers (``reply_to_id``) and is mutated in
place exactly once by the generation worker.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Column, ForeignKey, Index, String, Text, Uuid
from sqlmodel import Field

from gemini_chat.infrastructure.db.models.base import UUIDMixin, utcnow


class Message(UUIDMixin, table=True):
    """Message database table model."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_chatroom_created", "chatroom_id", "created_at"),
        Index("ix_messages_status_created", "status", "created_at"),
    )

    chatroom_id: UUID = Field(
        ...,
        sa_column=Column(
            "chatroom_id",
            Uuid,
            ForeignKey("chatrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        description="Reference to parent chatroom"
    )

    content: str = Field(
        ...,
        sa_column=Column(Text, nullable=False),
    )

    sender: str = Field(
        ...,
        max_length=10,
        sa_column=Column(String(10), nullable=False),
        description="'user' or 'ai'"
    )

    status: str = Field(
        default="completed",
        max_length=20,
        sa_column=Column(String(20), nullable=False, server_default="completed"),
        description="'pending', 'completed' or 'failed'"
    )

    reply_to_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(
            "reply_to_id",
            Uuid,
            ForeignKey("messages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        description="For AI messages: the user message being answered"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
    )

    completed_at: Optional[datetime] = Field(default=None)
