"""
SQL-backed per-day order counter.

A single upsert statement increments and returns the counter, so
concurrent writers serialise on the row lock and never observe the same
value. It runs in the caller's transaction: a rolled-back order does not
consume a number.
"""
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.exceptions import SequenceUnavailableError
from core.domain.repositories import SequenceCounter
from core.infrastructure.database.models import OrderCounterModel
from core.infrastructure.database.repositories.dialect import upsert_insert


logger = logging.getLogger(__name__)


class SqlAlchemySequenceCounter(SequenceCounter):
    """INSERT ... ON CONFLICT (date_key) DO UPDATE SET seq = seq + 1 RETURNING seq."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment(self, date_key: str) -> int:
        dialect = self.session.bind.dialect.name
        insert = upsert_insert(self.session)
        if insert is None:
            logger.error(f"No atomic upsert available for dialect {dialect}")
            raise SequenceUnavailableError(date_key)

        stmt = insert(OrderCounterModel).values(date_key=date_key, seq=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[OrderCounterModel.date_key],
            set_={"seq": OrderCounterModel.seq + 1},
        ).returning(OrderCounterModel.seq)

        try:
            result = await self.session.execute(stmt)
            value = result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"❌ Order counter increment failed for {date_key}: {e}", exc_info=True)
            raise SequenceUnavailableError(date_key) from e

        logger.info(f"Issued sequence {value} for {date_key}")
        return value
