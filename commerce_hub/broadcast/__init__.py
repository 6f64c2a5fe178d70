"""
Broadcast Module
"""
from .events import EntityType, MutationEvent, MutationType
from .hub import BroadcastHub, Publisher, Subscription
from .redis_relay import RedisPublisher, RedisRelay, create_redis_client

__all__ = [
    "EntityType",
    "MutationEvent",
    "MutationType",
    "BroadcastHub",
    "Publisher",
    "Subscription",
    "RedisPublisher",
    "RedisRelay",
    "create_redis_client",
]
