"""Per-day order counter."""
from abc import ABC, abstractmethod


class SequenceCounter(ABC):

    @abstractmethod
    async def increment(self, date_key: str) -> int:
        """
        Atomically increment and return the counter for `date_key`,
        creating it at 1 if absent. No two callers observe the same value.
        """
        pass
