"""
API Dependencies

FastAPI dependency injection for authentication and pipeline services.

Token issuance belongs to the auth collaborator; this module only verifies
bearer tokens and resolves the caller's id and subscription tier.
"""

import logging
from functools import lru_cache
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from redis import asyncio as aioredis

from gemini_chat.config.settings import get_settings
from gemini_chat.domain.subscription import CurrentUser, SubscriptionTier
from gemini_chat.infrastructure.cache.response_cache import ResponseCache
from gemini_chat.infrastructure.db.chat_service import ChatService
from gemini_chat.infrastructure.db.dependencies import SessionDep, UserRepoDep
from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue
from gemini_chat.infrastructure.services.quota_ledger import QuotaLedger


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _decode_token(token: str) -> dict:
    """Verify a JWT with the shared secret."""
    settings = get_settings()
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; rejecting all tokens")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp"]},
    )


async def get_current_user(
    users: UserRepoDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Resolve the authenticated caller.

    Returns:
        CurrentUser with id and subscription tier

    Raises:
        HTTPException 401: token missing, expired, invalid, or user unknown.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = _decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.debug("JWT verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    raw_user_id = payload.get("userId") or payload.get("sub")
    try:
        user_id = UUID(str(raw_user_id))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
        )

    user = await users.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return CurrentUser(
        id=user.id,
        subscription_tier=SubscriptionTier(user.subscription_tier),
    )


# =============================================================================
# Pipeline collaborators (process-wide, created on first use)
# =============================================================================

@lru_cache
def get_cache_client() -> aioredis.Redis:
    return aioredis.from_url(get_settings().redis_url, decode_responses=True)


@lru_cache
def get_generation_queue() -> GenerationQueue:
    settings = get_settings()
    return GenerationQueue.from_url(settings.redis_url, settings=settings)


def get_response_cache() -> ResponseCache:
    settings = get_settings()
    return ResponseCache(get_cache_client(), default_ttl=settings.chatroom_cache_ttl_seconds)


def get_chat_service(
    session: SessionDep,
    cache: ResponseCache = Depends(get_response_cache),
    queue: GenerationQueue = Depends(get_generation_queue),
) -> ChatService:
    """Get ChatService instance."""
    return ChatService(session, cache, queue, get_settings())


def get_quota_ledger(session: SessionDep) -> QuotaLedger:
    return QuotaLedger(session, get_settings())
