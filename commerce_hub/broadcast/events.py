"""
Catalog Mutation Events

The event published after every acknowledged product or category write,
and its shape on the live channel.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
import uuid

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Broadcast catalog entities"""
    PRODUCT = "product"
    CATEGORY = "category"

    @property
    def channel(self) -> str:
        return {EntityType.PRODUCT: "products", EntityType.CATEGORY: "categories"}[self]

    @property
    def collection(self) -> str:
        return self.channel


class MutationType(str, Enum):
    """Kinds of catalog write"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationEvent(BaseModel):
    """
    A catalog write that the store has acknowledged.

    `payload` is JSON-ready: the public record for creates, the id plus new
    field values for updates, and only the id for deletes.
    """
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    entity_type: EntityType
    mutation_type: MutationType
    payload: Dict[str, Any]
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def channel(self) -> str:
        return self.entity_type.channel

    @property
    def entity_id(self) -> str:
        return str(self.payload.get("id"))

    def to_message(self) -> Dict[str, Any]:
        """Live channel message: {"event": <channel>, "data": {"type": ..., <entity>: payload}}"""
        return {
            "event": self.channel,
            "data": {
                "type": self.mutation_type.value,
                self.entity_type.value: self.payload,
            },
        }
