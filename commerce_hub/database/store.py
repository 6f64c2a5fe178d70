"""
Entity Store Adapter

Uniform create/get/query/update/delete over named collections of one
datastore. Records cross this boundary as plain dicts with string ids; the
adapter translates to the engine's native UUID keys and maps driver
failures onto the domain error taxonomy.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional, Sequence, Type
import uuid

import structlog
from sqlalchemy import delete, inspect, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeoutError

from commerce_hub.database.connection import Database
from commerce_hub.errors import DuplicateRecord, InvalidIdentifier, NotFound, StoreUnavailable

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]


# =============================================================================
# FILTER OPERATORS
# =============================================================================

@dataclass(frozen=True)
class AnyOf:
    """Field value is one of `values`"""
    values: Sequence[Any]


@dataclass(frozen=True)
class Contains:
    """Field contains `text`, case-insensitive"""
    text: str


@dataclass(frozen=True)
class AtMost:
    """Field value is less than or equal to `value`"""
    value: Any


def parse_id(value: Any) -> uuid.UUID:
    """Translate an external id string into the storage key type."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidIdentifier(value) from None


class EntityStore:
    """
    CRUD and query capability over the collections of one `Database`.

    Every call runs in its own transaction; nothing is retried.
    """

    def __init__(self, database: Database, collections: Mapping[str, Type[Any]]):
        self.database = database
        self.collections = dict(collections)

    def _model(self, collection: str) -> Type[Any]:
        try:
            return self.collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection {collection!r} for {self.database.name}") from None

    @staticmethod
    def _to_record(obj: Any) -> Record:
        record: Record = {}
        for attr in inspect(obj).mapper.column_attrs:
            value = getattr(obj, attr.key)
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            record[attr.key] = value
        record["id"] = str(record["id"])
        return record

    @asynccontextmanager
    async def _guard(self, collection: str, operation: str) -> AsyncGenerator[None, None]:
        try:
            yield
        except IntegrityError as e:
            logger.warning(
                "Store rejected write",
                database=self.database.name,
                collection=collection,
                operation=operation,
                error=str(e.orig),
            )
            raise DuplicateRecord(f"{collection}: record conflicts with an existing one") from e
        except (DBAPIError, PoolTimeoutError, OSError) as e:
            logger.error(
                "Store operation failed",
                database=self.database.name,
                collection=collection,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailable(f"{self.database.name} store unavailable during {operation}") from e

    def _conditions(self, model: Type[Any], filter: Optional[Mapping[str, Any]]) -> List[Any]:
        conditions = []
        for field, expected in (filter or {}).items():
            column = getattr(model, field)
            if field == "id":
                if isinstance(expected, AnyOf):
                    expected = AnyOf([parse_id(v) for v in expected.values])
                else:
                    expected = parse_id(expected)

            if isinstance(expected, AnyOf):
                conditions.append(column.in_(list(expected.values)))
            elif isinstance(expected, Contains):
                conditions.append(column.icontains(expected.text, autoescape=True))
            elif isinstance(expected, AtMost):
                conditions.append(column <= expected.value)
            else:
                conditions.append(column == expected)
        return conditions

    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Insert a record and return it with its generated id and defaults."""
        model = self._model(collection)
        async with self._guard(collection, "create"):
            async with self.database.session() as session:
                obj = model(**record)
                session.add(obj)
                await session.flush()
                stored = self._to_record(obj)
        logger.debug("Record created", collection=collection, id=stored["id"])
        return stored

    async def get(self, collection: str, id: str) -> Record:
        """Fetch one record; raises NotFound when absent."""
        model = self._model(collection)
        key = parse_id(id)
        async with self._guard(collection, "get"):
            async with self.database.session() as session:
                obj = await session.get(model, key)
                if obj is None:
                    raise NotFound(collection, str(id))
                return self._to_record(obj)

    async def query(self, collection: str, filter: Optional[Mapping[str, Any]] = None) -> List[Record]:
        """
        Fetch records matching `filter`.

        Args:
            collection: Collection name
            filter: field -> value (equality) or AnyOf / Contains / AtMost

        Returns:
            Records ordered by creation time, then id
        """
        model = self._model(collection)
        conditions = self._conditions(model, filter)
        for condition_value in (filter or {}).values():
            if isinstance(condition_value, AnyOf) and not condition_value.values:
                return []

        stmt = select(model).where(*conditions).order_by(model.created_at, model.id)
        async with self._guard(collection, "query"):
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return [self._to_record(obj) for obj in result.scalars().all()]

    async def update(self, collection: str, id: str, patch: Mapping[str, Any]) -> int:
        """Apply `patch` to one record; returns the matched count."""
        model = self._model(collection)
        key = parse_id(id)
        stmt = (
            update(model)
            .where(model.id == key)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        async with self._guard(collection, "update"):
            async with self.database.session() as session:
                result = await session.execute(stmt)
                matched = result.rowcount
        logger.debug("Record updated", collection=collection, id=str(id), matched=matched)
        return matched

    async def delete(self, collection: str, id: str) -> int:
        """Delete one record; returns the deleted count."""
        model = self._model(collection)
        key = parse_id(id)
        stmt = delete(model).where(model.id == key).execution_options(synchronize_session=False)
        async with self._guard(collection, "delete"):
            async with self.database.session() as session:
                result = await session.execute(stmt)
                deleted = result.rowcount
        logger.debug("Record deleted", collection=collection, id=str(id), deleted=deleted)
        return deleted
