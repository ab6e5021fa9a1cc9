"""
SQLAlchemy Conversation Repository Implementation.

Conversations are keyed by the sorted participant pair; creation is an
`ON CONFLICT DO NOTHING` insert followed by a read, so concurrent
first contacts converge on one row.
"""
from datetime import datetime
from typing import List, Optional
import logging
import uuid
from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities import Conversation, Message, MessageType, participant_pair
from core.domain.exceptions import PersistenceError
from core.domain.repositories import ConversationRepository
from core.infrastructure.database.mappers import ConversationMapper, MessageMapper
from core.infrastructure.database.models import ConversationModel, MessageModel
from core.infrastructure.database.repositories.dialect import upsert_insert


logger = logging.getLogger(__name__)


class SQLAlchemyConversationRepository(ConversationRepository):
    """SQLAlchemy implementation of ConversationRepository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_or_create(self, user_a: str, user_b: str, now: datetime) -> Conversation:
        first, second = participant_pair(user_a, user_b)

        model = await self._find(first, second)
        if model is not None:
            return ConversationMapper.to_domain(model)

        insert = upsert_insert(self.session)
        if insert is None:
            raise PersistenceError(f"Unsupported dialect {self.session.bind.dialect.name}")

        await self.session.execute(
            insert(ConversationModel)
            .values(id=uuid.uuid4().hex, participant_a=first, participant_b=second, created_at=now)
            .on_conflict_do_nothing(index_elements=["participant_a", "participant_b"])
        )
        model = await self._find(first, second)
        logger.info(f"Conversation ready for {first}/{second}: {model.id}")
        return ConversationMapper.to_domain(model)

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        model = await self.session.get(ConversationModel, conversation_id)
        return ConversationMapper.to_domain(model) if model else None

    async def append_message(self, message: Message, preview: Optional[str] = None) -> Message:
        self.session.add(MessageMapper.to_persistence(message))
        await self.session.execute(
            update(ConversationModel)
            .where(ConversationModel.id == message.conversation_id)
            .values(
                last_message_preview=preview or message.content,
                last_message_sender_id=message.sender_id,
                last_message_at=message.created_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return message

    async def latest_delivery_confirmation(self, order_id: str) -> Optional[Message]:
        result = await self.session.execute(
            select(MessageModel)
            .where(
                and_(
                    MessageModel.order_id == order_id,
                    MessageModel.message_type == MessageType.DELIVERY_CONFIRMATION.value,
                )
            )
            .order_by(MessageModel.created_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return MessageMapper.to_domain(model) if model else None

    async def update_message(self, message: Message) -> None:
        await self.session.execute(
            update(MessageModel)
            .where(MessageModel.id == message.id)
            .values(
                delivery_confirmation=(
                    message.delivery_confirmation.to_dict() if message.delivery_confirmation else None
                )
            )
            .execution_options(synchronize_session=False)
        )

    async def list_messages(self, conversation_id: str) -> List[Message]:
        result = await self.session.execute(
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at)
        )
        return [MessageMapper.to_domain(m) for m in result.scalars().all()]

    async def _find(self, first: str, second: str) -> Optional[ConversationModel]:
        result = await self.session.execute(
            select(ConversationModel).where(
                and_(
                    ConversationModel.participant_a == first,
                    ConversationModel.participant_b == second,
                )
            )
        )
        return result.scalar_one_or_none()
