"""Alternative order counter backends."""
from .redis_sequence_counter import RedisSequenceCounter

__all__ = ["RedisSequenceCounter"]
