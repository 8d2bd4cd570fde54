"""
Dependency Injection Providers for Gemini Chat

Provides FastAPI dependencies for database sessions and repositories.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.infrastructure.db.database import get_session
from gemini_chat.infrastructure.db.repositories import (
    UserRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_user_repository(
    session: SessionDep,
) -> AsyncGenerator[UserRepository, None]:
    """Dependency provider for UserRepository."""
    yield UserRepository(session)


# Type aliases for repository dependencies
UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
