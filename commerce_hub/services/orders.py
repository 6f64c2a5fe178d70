"""
Order Pricing Engine

Orders snapshot the product references they were placed with and a total
priced at creation: the sum of each referenced product's price (once per
occurrence) plus a fixed 20% surcharge. The stored total never changes
afterwards; only the payment flag does.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Sequence, Tuple

import structlog

from commerce_hub.database.models import utcnow
from commerce_hub.database.store import AnyOf, EntityStore, Record, parse_id
from commerce_hub.errors import InvalidReference, NotFound, ValidationFailure

logger = structlog.get_logger(__name__)

SURCHARGE_MULTIPLIER = Decimal("1.20")
CENT = Decimal("0.01")


def price_order(prices: Iterable[Any]) -> Tuple[Decimal, Decimal]:
    """
    Price a list of line prices.

    Returns:
        (subtotal, total) where total = subtotal x 1.20, rounded half-up to cents
    """
    subtotal = sum((Decimal(str(price)) for price in prices), Decimal("0"))
    total = (subtotal * SURCHARGE_MULTIPLIER).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, total


class OrderPricingEngine:
    """Validates, prices and persists orders; handles the payment transition."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def create_order(self, user_id: str, product_ids: Sequence[Any]) -> Record:
        """
        Create an order for `user_id` referencing `product_ids`.

        All references must resolve or nothing is persisted.

        Raises:
            ValidationFailure: empty product list or malformed ids
            InvalidReference: unknown user or any unknown product
        """
        if not product_ids:
            raise ValidationFailure("An order needs at least one product")

        user_key = str(parse_id(user_id))
        requested = [str(parse_id(product_id)) for product_id in product_ids]

        try:
            await self.store.get("users", user_key)
        except NotFound:
            raise InvalidReference(f"User {user_key} does not exist", missing=[user_key]) from None

        distinct = list(dict.fromkeys(requested))
        products = await self.store.query("products", {"id": AnyOf(distinct)})
        prices = {product["id"]: product["price"] for product in products}

        missing = [product_id for product_id in distinct if product_id not in prices]
        if missing:
            logger.info("Order rejected, unknown products", user_id=user_key, missing=missing)
            raise InvalidReference("Some products are invalid", missing=missing)

        subtotal, total = price_order(prices[product_id] for product_id in requested)
        now = utcnow()
        order = await self.store.create(
            "orders",
            {
                "user_id": user_key,
                "product_ids": requested,
                "total": total,
                "payment": False,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(
            "Order created",
            order_id=order["id"],
            user_id=user_key,
            items=len(requested),
            subtotal=str(subtotal),
            total=str(total),
        )
        return order

    async def update_payment(self, order_id: str, paid: bool) -> Record:
        """Set the payment flag; no re-validation or re-pricing."""
        key = str(parse_id(order_id))
        matched = await self.store.update("orders", key, {"payment": paid, "updated_at": utcnow()})
        if not matched:
            raise NotFound("orders", key)
        logger.info("Order payment updated", order_id=key, payment=paid)
        return await self.store.get("orders", key)

    async def delete_order(self, order_id: str) -> None:
        key = str(parse_id(order_id))
        if not await self.store.delete("orders", key):
            raise NotFound("orders", key)
        logger.info("Order deleted", order_id=key)
