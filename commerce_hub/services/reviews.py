"""
Aggregate Recalculator

Reviews are immutable; each insert recomputes the parent product's
average score from all of its reviews. The review is the durable fact:
if the recompute fails afterwards the review still stands and the
outcome reports a PartialFailure instead of raising.

The recompute is read-then-write. Two reviews landing concurrently on the
same product can leave the stored average reflecting only one of them
until the next review arrives. `serialize_recompute` closes that window
within one process by taking a lock per product id.
"""

import asyncio
import contextlib
import weakref
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, AsyncContextManager, List, Mapping, Optional, Sequence

import structlog
from prometheus_client import Counter

from commerce_hub.database.store import EntityStore, Record, parse_id
from commerce_hub.errors import CommerceError, InvalidReference, NotFound, PartialFailure

logger = structlog.get_logger(__name__)

SCORE_PRECISION = Decimal("0.01")

SCORE_RECOMPUTATIONS = Counter(
    "commerce_score_recomputations_total",
    "Average score recomputations after a review insert",
    ["outcome"],
)


def average_score(scores: Sequence[int]) -> Optional[Decimal]:
    """Arithmetic mean of `scores`, rounded half-up to 2 places; None when empty."""
    if not scores:
        return None
    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return mean.quantize(SCORE_PRECISION, rounding=ROUND_HALF_UP)


@dataclass
class ReviewOutcome:
    """Result of a review insert"""
    review: Record
    average_score: Optional[Decimal]
    failure: Optional[PartialFailure] = None

    @property
    def aggregate_stale(self) -> bool:
        return self.failure is not None


class ReviewService:
    """Review writes and the product average score they drive."""

    def __init__(self, store: EntityStore, serialize_recompute: bool = False):
        self.store = store
        self.serialize_recompute = serialize_recompute
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def create_review(self, data: Mapping[str, Any]) -> ReviewOutcome:
        user_id = str(parse_id(data["user_id"]))
        product_id = str(parse_id(data["product_id"]))
        await self._require("users", user_id, "User")
        await self._require("products", product_id, "Product")

        review = await self.store.create(
            "reviews",
            {**data, "user_id": user_id, "product_id": product_id},
        )
        logger.info("Review created", review_id=review["id"], product_id=product_id, score=review["score"])

        try:
            score = await self.recompute_average(product_id)
        except CommerceError as e:
            failure = e if isinstance(e, PartialFailure) else PartialFailure(
                "Review stored but the product average score was not updated",
                cause=e,
                product_id=product_id,
            )
            SCORE_RECOMPUTATIONS.labels(outcome="failed").inc()
            logger.error(
                "Average score is stale after review insert",
                review_id=review["id"],
                product_id=product_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ReviewOutcome(review=review, average_score=None, failure=failure)

        return ReviewOutcome(review=review, average_score=score)

    async def recompute_average(self, product_id: str) -> Optional[Decimal]:
        """Recompute and store the average score of one product."""
        async with self._recompute_guard(product_id):
            reviews = await self.store.query("reviews", {"product_id": product_id})
            score = average_score([review["score"] for review in reviews])
            matched = await self.store.update("products", product_id, {"average_score": score})

        if not matched:
            raise PartialFailure(
                "Product disappeared before its average score was stored",
                product_id=product_id,
            )
        SCORE_RECOMPUTATIONS.labels(outcome="ok").inc()
        logger.debug("Average score recomputed", product_id=product_id, average_score=str(score), reviews=len(reviews))
        return score

    async def list_for_product(self, product_id: str) -> List[Record]:
        key = str(parse_id(product_id))
        await self.store.get("products", key)
        return await self.store.query("reviews", {"product_id": key})

    def _recompute_guard(self, product_id: str) -> AsyncContextManager[Any]:
        if not self.serialize_recompute:
            return contextlib.nullcontext()
        lock = self._locks.get(product_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[product_id] = lock
        return lock

    async def _require(self, collection: str, id: str, label: str) -> None:
        try:
            await self.store.get(collection, id)
        except NotFound:
            raise InvalidReference(f"{label} {id} does not exist", missing=[id]) from None
