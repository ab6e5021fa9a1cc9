"""SQLAlchemy User Repository Implementation (read-only)."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities import UserProfile
from core.domain.repositories import UserRepository
from core.infrastructure.database.mappers import UserMapper
from core.infrastructure.database.models import UserModel


class SQLAlchemyUserRepository(UserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str) -> Optional[UserProfile]:
        model = await self.session.get(UserModel, user_id)
        return UserMapper.to_domain(model) if model else None
