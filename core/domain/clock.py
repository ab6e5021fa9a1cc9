"""Clock helpers.

All timestamps in the domain are naive UTC datetimes so they round-trip
unchanged through every supported database driver.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
