"""Order number issuance from a per-day atomic counter."""
import logging
from datetime import datetime

from ..exceptions import SequenceUnavailableError
from ..repositories.sequence_counter import SequenceCounter
from ..value_objects import OrderNumber

logger = logging.getLogger(__name__)


def date_key_for(moment: datetime) -> str:
    """Calendar day (UTC) as YYYYMMDD."""
    return moment.strftime("%Y%m%d")


class SequenceIssuer:
    """
    Issues `{prefix}-{YYYYMMDD}-{seq:05d}` numbers.

    There is no fallback generator: if the counter cannot increment, the
    order is refused.
    """

    def __init__(self, counter: SequenceCounter, prefix: str = "ORD"):
        self.counter = counter
        self.prefix = prefix

    async def issue(self, now: datetime) -> OrderNumber:
        date_key = date_key_for(now)
        try:
            sequence = await self.counter.increment(date_key)
        except SequenceUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Sequence counter failed for {date_key}: {e}", exc_info=True)
            raise SequenceUnavailableError(date_key) from e

        return OrderNumber.build(self.prefix, date_key, sequence)
