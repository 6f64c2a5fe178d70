"""
User Accounts

Passwords are hashed before they reach the store and no read ever returns
them.
"""

import hashlib
from typing import Any, Dict, List, Mapping

import structlog

from commerce_hub.database.store import EntityStore, parse_id
from commerce_hub.errors import NotFound, ValidationFailure

logger = structlog.get_logger(__name__)

PUBLIC_FIELDS = ("id", "username", "email")


def hash_password(password: str) -> str:
    """SHA-512 hex digest of the password."""
    return hashlib.sha512(password.encode("utf-8")).hexdigest()


def public_user(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {field: record[field] for field in PUBLIC_FIELDS}


class UserService:
    def __init__(self, store: EntityStore):
        self.store = store

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        record = await self.store.create("users", self._hashed(data))
        logger.info("User created", user_id=record["id"])
        return public_user(record)

    async def replace(self, user_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Full update: username, email and password are all required."""
        return await self._apply(user_id, self._hashed(data))

    async def patch(self, user_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Partial update of any subset of username, email and password."""
        fields = {name: value for name, value in data.items() if value is not None}
        if not fields:
            raise ValidationFailure("No fields to update")
        return await self._apply(user_id, self._hashed(fields))

    async def get(self, user_id: str) -> Dict[str, Any]:
        return public_user(await self.store.get("users", user_id))

    async def list_all(self) -> List[Dict[str, Any]]:
        return [public_user(record) for record in await self.store.query("users")]

    async def _apply(self, user_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        key = str(parse_id(user_id))
        if not await self.store.update("users", key, fields):
            raise NotFound("users", key)
        logger.info("User updated", user_id=key, fields=sorted(name for name in fields if name != "password"))
        return public_user(await self.store.get("users", key))

    @staticmethod
    def _hashed(data: Mapping[str, Any]) -> Dict[str, Any]:
        fields = dict(data)
        if fields.get("password") is not None:
            fields["password"] = hash_password(fields["password"])
        return fields
