"""
Analytics Recorder

Append-only visitor events: views, actions and goals.
"""

from typing import Any, Mapping

import structlog

from commerce_hub.database.store import EntityStore, Record

logger = structlog.get_logger(__name__)

EVENT_KINDS = ("views", "actions", "goals")


class AnalyticsService:
    def __init__(self, store: EntityStore):
        self.store = store

    async def record(self, kind: str, data: Mapping[str, Any]) -> Record:
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown analytics event kind {kind!r}")
        event = await self.store.create(kind, data)
        logger.info("Analytics event recorded", kind=kind, id=event["id"], visitor=event["visitor"])
        return event
