"""
Lookup / Join Resolver

Read-side assembly of records that reference each other across
collections, and across the commerce and analytics datastores. A
reference whose target no longer exists is omitted from the result rather
than failing the read.
"""

import asyncio
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import structlog

from commerce_hub.database.store import AnyOf, AtMost, Contains, EntityStore, Record, parse_id
from commerce_hub.errors import InvalidIdentifier, NotFound
from commerce_hub.services.users import public_user

logger = structlog.get_logger(__name__)


def _distinct(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def _in_reference_order(ids: Iterable[str], records: Iterable[Record]) -> List[Record]:
    """Records matching `ids`, in reference order, skipping dangling ones."""
    by_id = {record["id"]: record for record in records}
    return [by_id[ref] for ref in _distinct(ids) if ref in by_id]


class LookupResolver:
    """Joins products to categories, orders to users and products, goals to visitor activity."""

    def __init__(self, commerce: EntityStore, analytics: EntityStore):
        self.commerce = commerce
        self.analytics = analytics

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    async def product(self, product_id: str) -> Record:
        """Product with its categories embedded; NotFound when absent."""
        product = await self.commerce.get("products", product_id)
        categories = await self._many(self.commerce, "categories", product["category_ids"])
        return {**product, "categories": categories}

    async def products(
        self,
        name: Optional[str] = None,
        about: Optional[str] = None,
        max_price: Optional[Decimal] = None,
        with_categories: bool = False,
    ) -> List[Record]:
        """Products matching the optional filters; categories resolved in one batch."""
        filter: Dict[str, Any] = {}
        if name:
            filter["name"] = Contains(name)
        if about:
            filter["about"] = Contains(about)
        if max_price is not None:
            filter["price"] = AtMost(max_price)

        products = await self.commerce.query("products", filter)
        if not with_categories:
            return products

        category_ids = _distinct(ref for product in products for ref in product["category_ids"])
        categories = await self._many(self.commerce, "categories", category_ids)
        return [
            {**product, "categories": _in_reference_order(product["category_ids"], categories)}
            for product in products
        ]

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def order(self, order_id: str) -> Record:
        """Order with its user's public projection and its products' current records."""
        order = await self.commerce.get("orders", order_id)
        try:
            user = public_user(await self.commerce.get("users", order["user_id"]))
        except NotFound:
            logger.warning("Order references a missing user", order_id=order["id"], user_id=order["user_id"])
            user = None
        products = await self._many(self.commerce, "products", order["product_ids"])
        return {**order, "user": user, "products": products}

    async def orders(self) -> List[Record]:
        orders = await self.commerce.query("orders")
        user_ids = _distinct(order["user_id"] for order in orders)
        product_ids = _distinct(ref for order in orders for ref in order["product_ids"])

        users = {
            user["id"]: public_user(user)
            for user in await self._many(self.commerce, "users", user_ids)
        }
        products = await self._many(self.commerce, "products", product_ids)
        return [
            {
                **order,
                "user": users.get(order["user_id"]),
                "products": _in_reference_order(order["product_ids"], products),
            }
            for order in orders
        ]

    # =========================================================================
    # ANALYTICS
    # =========================================================================

    async def goal_details(self, goal_id: str) -> Dict[str, Any]:
        """A goal plus every view and action recorded for the same visitor."""
        goal = await self.analytics.get("goals", goal_id)
        views, actions = await asyncio.gather(
            self.analytics.query("views", {"visitor": goal["visitor"]}),
            self.analytics.query("actions", {"visitor": goal["visitor"]}),
        )
        logger.debug(
            "Goal details resolved",
            goal_id=goal["id"],
            visitor=goal["visitor"],
            views=len(views),
            actions=len(actions),
        )
        return {"goal": goal, "views": views, "actions": actions}

    @staticmethod
    async def _many(store: EntityStore, collection: str, ids: List[str]) -> List[Record]:
        valid = []
        for ref in _distinct(ids):
            try:
                valid.append(str(parse_id(ref)))
            except InvalidIdentifier:
                logger.warning("Skipping malformed stored reference", collection=collection, ref=ref)
        records = await store.query(collection, {"id": AnyOf(valid)})
        return _in_reference_order(valid, records)
