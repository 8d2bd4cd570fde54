"""
Chatroom SQLModel for Gemini Chat

A chatroom belongs to exactly one user. ``updated_at`` is touched whenever
an AI reply completes so recency-ordered listings resort.
"""

from uuid import UUID

from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlmodel import Field

from gemini_chat.infrastructure.db.models.base import TimestampMixin, UUIDMixin


class Chatroom(UUIDMixin, TimestampMixin, table=True):
    """Chatroom database table model."""

    __tablename__ = "chatrooms"

    user_id: UUID = Field(
        ...,
        sa_column=Column(
            "user_id",
            Uuid,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        ),
        description="Owning user"
    )

    title: str = Field(
        ...,
        max_length=255,
        sa_column=Column(String(255), nullable=False),
    )
