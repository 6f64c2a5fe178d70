"""
In-Process Broadcast Hub

Fan-out of mutation events to every live subscriber in this process.
Publishing never awaits I/O: each subscriber owns a bounded FIFO queue and
drains it at its own pace, so events reach a subscriber in the order they
were published. A subscriber that falls behind loses events; nobody else
is affected.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Protocol, Set

import structlog
from prometheus_client import Counter

from commerce_hub.broadcast.events import MutationEvent

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

EVENTS_PUBLISHED = Counter(
    "commerce_broadcast_events_published_total",
    "Mutation events handed to the broadcast transport",
    ["channel", "type"],
)

EVENTS_DROPPED = Counter(
    "commerce_broadcast_events_dropped_total",
    "Mutation events dropped for a subscriber whose queue was full",
    ["channel"],
)


class Publisher(Protocol):
    """Anything the write path can hand an acknowledged mutation to"""

    async def publish(self, event: MutationEvent) -> None:
        ...


class Subscription:
    """One live listener's pending events"""

    def __init__(self, max_pending: int):
        self._queue: "asyncio.Queue[MutationEvent]" = asyncio.Queue(maxsize=max_pending)
        self.dropped = 0

    def offer(self, event: MutationEvent) -> bool:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def get(self) -> MutationEvent:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[MutationEvent]:
        return self

    async def __anext__(self) -> MutationEvent:
        return await self.get()


class BroadcastHub:
    """
    In-memory publish/subscribe hub.

    Example:
        hub = BroadcastHub()
        async with hub.subscribe() as subscription:
            event = await subscription.get()
    """

    def __init__(self, subscriber_queue_size: int = 100):
        self.subscriber_queue_size = subscriber_queue_size
        self._subscriptions: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @asynccontextmanager
    async def subscribe(self) -> AsyncGenerator[Subscription, None]:
        """Register a subscriber for as long as the context is open."""
        subscription = Subscription(self.subscriber_queue_size)
        self._subscriptions.add(subscription)
        logger.debug("Subscriber joined", subscribers=len(self._subscriptions))
        try:
            yield subscription
        finally:
            self._subscriptions.discard(subscription)
            logger.debug(
                "Subscriber left",
                subscribers=len(self._subscriptions),
                dropped=subscription.dropped,
            )

    async def publish(self, event: MutationEvent) -> None:
        """Queue `event` for every current subscriber."""
        EVENTS_PUBLISHED.labels(channel=event.channel, type=event.mutation_type.value).inc()
        for subscription in list(self._subscriptions):
            if not subscription.offer(event):
                EVENTS_DROPPED.labels(channel=event.channel).inc()
                logger.warning(
                    "Subscriber queue full, event dropped",
                    channel=event.channel,
                    event_id=event.event_id,
                )
        logger.debug(
            "Mutation event published",
            channel=event.channel,
            type=event.mutation_type.value,
            entity_id=event.entity_id,
            subscribers=len(self._subscriptions),
        )
