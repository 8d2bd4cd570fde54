"""
User Repository

Read access to the auth collaborator's user rows.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.infrastructure.db.models.user import User


class UserRepository:
    """Looks up users by id."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self._session.get(User, user_id)
