# app/db/repositories/user_repository.py
from typing import Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user import User
from app.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_in_organization(self, user_id: UUID, organization_id: UUID) -> Optional[User]:
        """Get an active user with tenant verification"""
        result = await self.session.execute(
            select(User).where(
                and_(
                    User.id == user_id,
                    User.organization_id == organization_id,
                    User.is_active.is_(True),
                )
            )
        )
        return result.scalar_one_or_none()
