"""
Response Cache

Short-TTL Redis cache for read-heavy listing endpoints.

Entries are JSON documents. The chatroom listing is invalidated when a
chatroom is created but not when a reply completes; listings may show stale
counts and timestamps for up to the TTL.
"""

import json
import logging
from typing import Any, Optional
from uuid import UUID

from redis import asyncio as aioredis
from redis.exceptions import RedisError


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def chatrooms_key(user_id: UUID) -> str:
    """Cache key for a user's chatroom listing."""
    return f"chatrooms:{user_id}"


class ResponseCache:
    """
    Key/value cache with per-entry TTL.

    Redis failures are logged and behave like a miss, so reads fall through
    to the database instead of failing the request.
    """

    def __init__(self, client: aioredis.Redis, default_ttl: int = DEFAULT_TTL_SECONDS):
        self._client = client
        self._default_ttl = default_ttl

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            await self.invalidate(key)
            return None

    async def set_with_ttl(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None
    ) -> None:
        """Store a JSON-serializable value for ``ttl_seconds`` (default TTL if None)."""
        ttl = ttl_seconds or self._default_ttl
        try:
            await self._client.setex(key, ttl, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    async def invalidate(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {key}: {e}")
