# API Routes Module
from gemini_chat.api.routes import chatrooms, users

__all__ = [
    "chatrooms",
    "users",
]
