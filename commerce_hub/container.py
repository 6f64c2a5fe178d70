"""
Service Container

Builds the two datastores, the broadcast transport and every service once
per process, and tears them down again at shutdown. The HTTP layer and the
seeder receive a `Services` instance instead of reaching for globals.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from commerce_hub.broadcast import (
    BroadcastHub,
    Publisher,
    RedisPublisher,
    RedisRelay,
    create_redis_client,
)
from commerce_hub.config.settings import Settings
from commerce_hub.database import (
    ANALYTICS_COLLECTIONS,
    COMMERCE_COLLECTIONS,
    AnalyticsBase,
    CommerceBase,
    Database,
    EntityStore,
)
from commerce_hub.services import (
    AnalyticsService,
    CatalogService,
    LookupResolver,
    OrderPricingEngine,
    ReviewService,
    UserService,
)

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    """Everything a request handler needs, wired together"""
    commerce_db: Database
    analytics_db: Database
    commerce: EntityStore
    analytics: EntityStore
    hub: BroadcastHub
    publisher: Publisher
    catalog: CatalogService
    reviews: ReviewService
    orders: OrderPricingEngine
    users: UserService
    events: AnalyticsService
    lookups: LookupResolver
    redis: Optional[Redis] = None
    relay: Optional[RedisRelay] = None

    @classmethod
    async def start(cls, settings: Settings) -> "Services":
        """Connect both datastores and start the broadcast transport."""
        commerce_db = Database(
            settings.database.async_url,
            name="commerce",
            echo=settings.database.echo,
        )
        analytics_db = Database(
            settings.analytics_database.async_url,
            name="analytics",
            echo=settings.analytics_database.echo,
        )
        await commerce_db.connect(CommerceBase.metadata if settings.database.create_tables else None)
        try:
            await analytics_db.connect(
                AnalyticsBase.metadata if settings.analytics_database.create_tables else None
            )
        except Exception:
            await commerce_db.close()
            raise

        hub = BroadcastHub(subscriber_queue_size=settings.broadcast.subscriber_queue_size)
        publisher: Publisher = hub
        redis = None
        relay = None

        if settings.broadcast.backend == "redis":
            redis = create_redis_client(settings.redis)
            publisher = RedisPublisher(redis, settings.broadcast.channel)
            relay = RedisRelay(redis, settings.broadcast.channel, hub)
            await publisher.start()
            await relay.start()

        commerce = EntityStore(commerce_db, COMMERCE_COLLECTIONS)
        analytics = EntityStore(analytics_db, ANALYTICS_COLLECTIONS)

        logger.info(
            "Services started",
            broadcast_backend=settings.broadcast.backend,
            serialize_score_recompute=settings.commerce.serialize_score_recompute,
        )
        return cls(
            commerce_db=commerce_db,
            analytics_db=analytics_db,
            commerce=commerce,
            analytics=analytics,
            hub=hub,
            publisher=publisher,
            catalog=CatalogService(commerce, publisher),
            reviews=ReviewService(commerce, serialize_recompute=settings.commerce.serialize_score_recompute),
            orders=OrderPricingEngine(commerce),
            users=UserService(commerce),
            events=AnalyticsService(analytics),
            lookups=LookupResolver(commerce, analytics),
            redis=redis,
            relay=relay,
        )

    async def close(self) -> None:
        """Stop the broadcast transport and dispose of both datastores."""
        if isinstance(self.publisher, RedisPublisher):
            await self.publisher.flush()
            await self.publisher.stop()
        if self.relay is not None:
            await self.relay.stop()
        if self.redis is not None:
            await self.redis.aclose()
        await self.commerce_db.close()
        await self.analytics_db.close()
        logger.info("Services closed")

    async def check_health(self) -> Dict[str, Any]:
        """Per-dependency health report."""
        checks: Dict[str, Any] = {
            "commerce_db": await self.commerce_db.check_health(),
            "analytics_db": await self.analytics_db.check_health(),
            "broadcast": {"status": "healthy", "subscribers": self.hub.subscriber_count},
        }
        if self.redis is not None:
            try:
                await self.redis.ping()
                checks["redis"] = {"status": "healthy"}
            except (RedisError, OSError) as e:
                checks["redis"] = {"status": "unhealthy", "error": str(e)}
        return checks
