"""
Cache Infrastructure Module

Redis-backed response cache for listing endpoints.
"""

from gemini_chat.infrastructure.cache.response_cache import (
    ResponseCache,
    chatrooms_key,
)

__all__ = ["ResponseCache", "chatrooms_key"]
