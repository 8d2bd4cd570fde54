"""
UsageRecord SQLModel for Gemini Chat

One row per (user, calendar day). Created lazily on the first send of the
day, only ever incremented, never deleted.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlmodel import Field

from gemini_chat.infrastructure.db.models.base import UUIDMixin, utcnow


class UsageRecord(UUIDMixin, table=True):
    """Daily message counter table model."""

    __tablename__ = "usage_records"
    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_usage_records_user_date"),
    )

    user_id: UUID = Field(
        ...,
        sa_column=Column(
            "user_id",
            Uuid,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        ),
    )

    usage_date: date = Field(..., nullable=False)

    message_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
