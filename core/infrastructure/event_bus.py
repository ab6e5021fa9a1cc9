"""
Event Bus Implementation (Infrastructure Layer).

Delivers committed domain events to subscribers (the fan-out notifier).
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Type
from asyncio import Queue, Task
import asyncio

from core.domain.clock import utc_now
from core.domain.event_bus import EventBus, EventHandler
from core.domain.events.base import DomainEvent


logger = logging.getLogger(__name__)


@dataclass
class HandlerFailure:
    """One failed handler invocation, kept on the bus's error channel."""
    event: DomainEvent
    handler_name: str
    error: BaseException
    occurred_at: datetime = field(default_factory=utc_now)


class OutboundEventBus(EventBus):
    """
    Outbound work queue for post-commit side effects.

    Features:
    - Handlers subscribe per event class (subclasses match too)
    - Once started, publish() only enqueues; a worker task dispatches
    - Before start() (or after stop()) events are dispatched inline
    - A failing handler never affects the publisher or other handlers;
      failures are logged and appended to `failures`

    Lifecycle is owned by whoever constructs it (the API lifespan, or a test).
    """

    def __init__(self, max_failures: int = 1000):
        """Initialize event bus with subscribers."""
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._event_queue: Optional[Queue] = None
        self._worker_task: Optional[Task] = None
        self._max_failures = max_failures
        self.failures: List[HandlerFailure] = []

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def start(self) -> None:
        """Start the background worker."""
        if self.is_running:
            return
        self._event_queue = Queue()
        self._worker_task = asyncio.create_task(self._worker(), name="outbound-event-bus")
        logger.info("✅ Outbound event bus started")

    async def join(self) -> None:
        """Wait until every queued event has been dispatched."""
        if self._event_queue is not None:
            await self._event_queue.join()

    async def stop(self) -> None:
        """Drain the queue, then stop the worker."""
        if self._worker_task is None:
            return
        await self.join()
        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        self._worker_task = None
        self._event_queue = None
        logger.info("✅ Outbound event bus stopped")

    # =========================================================================
    # PUBLISH / SUBSCRIBE
    # =========================================================================

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Subscribe to an event class.

        Args:
            event_type: DomainEvent subclass
            handler: Coroutine function that receives events
        """
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.info(f"Registered {_handler_name(handler)} for {event_type.__name__}")

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a single domain event.

        Args:
            event: Domain event to publish
        """
        logger.info(f"Publishing event: {event.event_type} (aggregate: {event.aggregate_id})")

        if self.is_running:
            self._event_queue.put_nowait(event)
        else:
            await self._dispatch(event)

    async def publish_all(self, events: List[DomainEvent]) -> None:
        """
        Publish multiple domain events in order.

        Args:
            events: List of domain events to publish
        """
        for event in events:
            await self.publish(event)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def _worker(self) -> None:
        while True:
            event = await self._event_queue.get()
            try:
                await self._dispatch(event)
            finally:
                self._event_queue.task_done()

    def _handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        handlers: List[EventHandler] = []
        for event_type, registered in self._subscribers.items():
            if isinstance(event, event_type):
                handlers.extend(registered)
        return handlers

    async def _dispatch(self, event: DomainEvent) -> None:
        """Notify all subscribers about an event."""
        handlers = self._handlers_for(event)
        if not handlers:
            return

        logger.debug(f"Notifying {len(handlers)} subscribers about {event.event_type}")

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                name = _handler_name(handler)
                logger.error(f"Subscriber {name} failed on {event.event_type}: {e}", exc_info=True)
                self._record_failure(HandlerFailure(event=event, handler_name=name, error=e))

    def _record_failure(self, failure: HandlerFailure) -> None:
        self.failures.append(failure)
        if len(self.failures) > self._max_failures:
            del self.failures[: len(self.failures) - self._max_failures]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))
