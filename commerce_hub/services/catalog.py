"""
Catalog Mutation Broadcaster

Product and category writes. Each write is persisted first; only once the
store acknowledges it is a mutation event handed to the publisher. The
caller gets the persistence result whatever happens to the broadcast.
"""

from typing import Any, Dict, List, Mapping

import structlog
from prometheus_client import Counter

from commerce_hub.broadcast.events import EntityType, MutationEvent, MutationType
from commerce_hub.broadcast.hub import Publisher
from commerce_hub.database.store import EntityStore, Record, parse_id
from commerce_hub.errors import NotFound
from commerce_hub.schemas import CategoryOut, ProductOut

logger = structlog.get_logger(__name__)

PUBLISH_FAILURES = Counter(
    "commerce_broadcast_publish_failures_total",
    "Acknowledged catalog writes whose broadcast could not be handed off",
    ["channel"],
)

_PUBLIC_SHAPES = {
    EntityType.PRODUCT: ProductOut,
    EntityType.CATEGORY: CategoryOut,
}


def public_payload(entity: EntityType, record: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """JSON-ready wire shape of a catalog record (or of an id plus changed fields)."""
    shape = _PUBLIC_SHAPES[entity].model_validate(dict(record))
    return shape.model_dump(mode="json", by_alias=True, exclude_unset=partial)


class CatalogService:
    """Create, update and delete catalog entities, then broadcast the change."""

    def __init__(self, store: EntityStore, publisher: Publisher):
        self.store = store
        self.publisher = publisher

    async def get(self, entity: EntityType, id: str) -> Record:
        return await self.store.get(entity.collection, id)

    async def list_all(self, entity: EntityType) -> List[Record]:
        return await self.store.query(entity.collection)

    async def create(self, entity: EntityType, data: Mapping[str, Any]) -> Record:
        record = await self.store.create(entity.collection, data)
        logger.info("Catalog entity created", entity=entity.value, id=record["id"])
        await self._broadcast(entity, MutationType.CREATE, public_payload(entity, record))
        return record

    async def update(self, entity: EntityType, id: str, data: Mapping[str, Any]) -> Record:
        key = str(parse_id(id))
        current = await self.store.get(entity.collection, key)
        matched = await self.store.update(entity.collection, key, data)
        if not matched:
            raise NotFound(entity.collection, key)

        # Built from the acknowledged patch so nothing awaits between ack and publish
        payload = public_payload(entity, {"id": key, **data}, partial=True)
        logger.info("Catalog entity updated", entity=entity.value, id=key)
        await self._broadcast(entity, MutationType.UPDATE, payload)

        try:
            return await self.store.get(entity.collection, key)
        except NotFound:
            # Deleted right after the update; the update itself still stands
            logger.info("Catalog entity deleted after update", entity=entity.value, id=key)
            return {**current, **data}

    async def delete(self, entity: EntityType, id: str) -> None:
        key = str(parse_id(id))
        deleted = await self.store.delete(entity.collection, key)
        if not deleted:
            raise NotFound(entity.collection, key)

        logger.info("Catalog entity deleted", entity=entity.value, id=key)
        await self._broadcast(entity, MutationType.DELETE, {"id": key})

    async def _broadcast(self, entity: EntityType, mutation: MutationType, payload: Dict[str, Any]) -> None:
        event = MutationEvent(entity_type=entity, mutation_type=mutation, payload=payload)
        try:
            await self.publisher.publish(event)
        except Exception as e:
            PUBLISH_FAILURES.labels(channel=event.channel).inc()
            logger.error(
                "Broadcast failed after acknowledged write",
                channel=event.channel,
                type=mutation.value,
                entity_id=event.entity_id,
                error=str(e),
                error_type=type(e).__name__,
            )
