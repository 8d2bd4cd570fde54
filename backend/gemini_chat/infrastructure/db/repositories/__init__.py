"""
Repository Layer for Gemini Chat

Exports all repository classes for dependency injection.
"""

from gemini_chat.infrastructure.db.repositories.chat_repository import (
    ChatRepository,
)
from gemini_chat.infrastructure.db.repositories.usage_repository import (
    UsageRepository,
)
from gemini_chat.infrastructure.db.repositories.user_repository import (
    UserRepository,
)


__all__ = [
    "ChatRepository",
    "UsageRepository",
    "UserRepository",
]
