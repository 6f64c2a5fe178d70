"""
Unit Tests - Broadcast Hub and Redis Relay
"""
import asyncio

import pytest
from fakeredis import aioredis as fakeredis

from commerce_hub.broadcast import (
    BroadcastHub,
    EntityType,
    MutationEvent,
    MutationType,
    RedisPublisher,
    RedisRelay,
)


def event(n: int) -> MutationEvent:
    return MutationEvent(
        entity_type=EntityType.PRODUCT,
        mutation_type=MutationType.UPDATE,
        payload={"id": f"p-{n}", "name": f"v{n}"},
    )


class TestMutationEvent:
    """Tests for the live message shape"""

    def test_create_message(self):
        created = MutationEvent(
            entity_type=EntityType.CATEGORY,
            mutation_type=MutationType.CREATE,
            payload={"id": "c-1", "name": "Books"},
        )

        assert created.channel == "categories"
        assert created.entity_id == "c-1"
        assert created.to_message() == {
            "event": "categories",
            "data": {"type": "create", "category": {"id": "c-1", "name": "Books"}},
        }

    def test_json_round_trip_keeps_identity(self):
        original = event(1)
        restored = MutationEvent.model_validate_json(original.model_dump_json())

        assert restored.event_id == original.event_id
        assert restored.to_message() == original.to_message()


class TestBroadcastHub:
    """Tests for in-process fan-out"""

    @pytest.mark.asyncio
    async def test_every_subscriber_gets_events_in_order(self):
        hub = BroadcastHub()

        async with hub.subscribe() as first, hub.subscribe() as second:
            for n in range(3):
                await hub.publish(event(n))

            for subscription in (first, second):
                received = [await subscription.get() for _ in range(3)]
                assert [e.payload["id"] for e in received] == ["p-0", "p-1", "p-2"]

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        hub = BroadcastHub()

        await hub.publish(event(0))

        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_subscription_ends_with_context(self):
        hub = BroadcastHub()

        async with hub.subscribe():
            assert hub.subscriber_count == 1

        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_full_queue_drops_for_that_subscriber_only(self):
        hub = BroadcastHub(subscriber_queue_size=2)

        async with hub.subscribe() as slow, hub.subscribe() as fast:
            await hub.publish(event(0))
            assert (await fast.get()).payload["id"] == "p-0"
            await hub.publish(event(1))
            assert (await fast.get()).payload["id"] == "p-1"
            await hub.publish(event(2))
            assert (await fast.get()).payload["id"] == "p-2"

            assert slow.dropped == 1
            assert fast.dropped == 0
            assert [(await slow.get()).payload["id"] for _ in range(2)] == ["p-0", "p-1"]


class TestRedisTransport:
    """Tests for the redis publisher and relay over fakeredis"""

    @pytest.mark.asyncio
    async def test_published_events_reach_local_subscribers(self):
        client = fakeredis.FakeRedis(decode_responses=True)
        hub = BroadcastHub()
        publisher = RedisPublisher(client, "test-channel")
        relay = RedisRelay(client, "test-channel", hub, poll_timeout=0.05)
        await relay.start()
        await publisher.start()

        try:
            async with hub.subscribe() as subscription:
                for n in range(3):
                    await publisher.publish(event(n))
                await publisher.flush()

                received = [
                    await asyncio.wait_for(subscription.get(), timeout=2)
                    for _ in range(3)
                ]
        finally:
            await publisher.stop()
            await relay.stop()
            await client.aclose()

        assert [e.payload["id"] for e in received] == ["p-0", "p-1", "p-2"]
        assert received[0].mutation_type == MutationType.UPDATE

    @pytest.mark.asyncio
    async def test_publish_before_start_fails(self):
        client = fakeredis.FakeRedis(decode_responses=True)
        publisher = RedisPublisher(client, "test-channel")

        with pytest.raises(RuntimeError):
            await publisher.publish(event(0))

        await client.aclose()

    @pytest.mark.asyncio
    async def test_relay_ignores_malformed_messages(self):
        client = fakeredis.FakeRedis(decode_responses=True)
        hub = BroadcastHub()
        relay = RedisRelay(client, "test-channel", hub, poll_timeout=0.05)
        await relay.start()

        try:
            async with hub.subscribe() as subscription:
                await client.publish("test-channel", "not json")
                await client.publish("test-channel", event(7).model_dump_json())

                received = await asyncio.wait_for(subscription.get(), timeout=2)
        finally:
            await relay.stop()
            await client.aclose()

        assert received.payload["id"] == "p-7"
