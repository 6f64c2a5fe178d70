"""
Redis Broadcast Transport

Carries mutation events between worker processes over a redis pub/sub
channel. `RedisPublisher` is the write path's publisher: it queues events
locally and a single task PUBLISHes them in order. `RedisRelay` runs in
every worker, listens on the channel and feeds the worker's local hub.
"""

import asyncio
import contextlib
from typing import Optional

import structlog
from prometheus_client import Counter
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from commerce_hub.broadcast.events import MutationEvent
from commerce_hub.broadcast.hub import BroadcastHub
from commerce_hub.config.settings import RedisSettings

logger = structlog.get_logger(__name__)

RELAY_FAILURES = Counter(
    "commerce_broadcast_relay_failures_total",
    "Redis publish/receive failures on the broadcast channel",
    ["direction"],
)


def create_redis_client(settings: RedisSettings) -> Redis:
    """Create the process-wide redis client."""
    return Redis.from_url(
        settings.get_url(),
        socket_timeout=settings.socket_timeout,
        decode_responses=True,
        health_check_interval=30,
    )


class RedisPublisher:
    """Publishes mutation events to a redis channel, one at a time, in call order."""

    def __init__(self, client: Redis, channel: str, max_pending: int = 1000):
        self.client = client
        self.channel = channel
        self._queue: "asyncio.Queue[MutationEvent]" = asyncio.Queue(maxsize=max_pending)
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._drain(), name="redis-broadcast-publisher")
            logger.info("Redis broadcast publisher started", channel=self.channel)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("Redis broadcast publisher stopped", pending=self._queue.qsize())

    async def publish(self, event: MutationEvent) -> None:
        """Queue `event` for publication; raises asyncio.QueueFull when backed up."""
        if self._task is None:
            raise RuntimeError("RedisPublisher not started")
        self._queue.put_nowait(event)

    async def flush(self) -> None:
        """Wait until every queued event has been sent (or failed)."""
        await self._queue.join()

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.client.publish(self.channel, event.model_dump_json())
            except RedisError as e:
                RELAY_FAILURES.labels(direction="publish").inc()
                logger.error(
                    "Redis publish failed, event lost",
                    channel=self.channel,
                    event_id=event.event_id,
                    error=str(e),
                )
            finally:
                self._queue.task_done()


class RedisRelay:
    """Feeds events from the redis channel into the local hub."""

    def __init__(self, client: Redis, channel: str, hub: BroadcastHub, poll_timeout: float = 1.0):
        self.client = client
        self.channel = channel
        self.hub = hub
        self.poll_timeout = poll_timeout
        self._pubsub = None
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._pubsub = self.client.pubsub()
        await self._pubsub.subscribe(self.channel)
        self._task = asyncio.create_task(self._listen(), name="redis-broadcast-relay")
        logger.info("Redis broadcast relay subscribed", channel=self.channel)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        if self._pubsub is not None:
            with contextlib.suppress(RedisError):
                await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None
            logger.info("Redis broadcast relay closed", channel=self.channel)

    async def _listen(self) -> None:
        while True:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=self.poll_timeout,
                )
            except RedisError as e:
                RELAY_FAILURES.labels(direction="receive").inc()
                logger.error("Redis relay receive failed", channel=self.channel, error=str(e))
                await asyncio.sleep(self.poll_timeout)
                continue

            if message is None or message.get("type") != "message":
                continue

            try:
                event = MutationEvent.model_validate_json(message["data"])
            except ValidationError as e:
                logger.warning("Ignoring malformed broadcast message", channel=self.channel, error=str(e))
                continue

            await self.hub.publish(event)
