"""SQLAlchemy Notification Repository Implementation."""
from typing import List
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities import Notification
from core.domain.repositories import NotificationRepository
from core.infrastructure.database.mappers import NotificationMapper
from core.infrastructure.database.models import NotificationModel


logger = logging.getLogger(__name__)


class SQLAlchemyNotificationRepository(NotificationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, notification: Notification) -> None:
        self.session.add(NotificationMapper.to_persistence(notification))
        await self.session.flush()
        logger.info(f"Notification '{notification.title}' -> {notification.recipient_id}")

    async def list_for_recipient(self, recipient_id: str) -> List[Notification]:
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.recipient_id == recipient_id)
            .order_by(NotificationModel.created_at)
        )
        return [NotificationMapper.to_domain(m) for m in result.scalars().all()]
