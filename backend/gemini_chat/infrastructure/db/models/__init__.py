"""
SQLModel ORM Models for Gemini Chat

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from gemini_chat.infrastructure.db.models.base import (
    TimestampMixin,
    UUIDMixin,
    utcnow,
)
from gemini_chat.infrastructure.db.models.user import User
from gemini_chat.infrastructure.db.models.chatroom import Chatroom
from gemini_chat.infrastructure.db.models.message import Message
from gemini_chat.infrastructure.db.models.usage_record import UsageRecord


__all__ = [
    # Base
    "TimestampMixin",
    "UUIDMixin",
    "utcnow",
    # Auth collaborator
    "User",
    # Chat
    "Chatroom",
    "Message",
    # Quota
    "UsageRecord",
]
