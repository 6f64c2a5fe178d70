"""
Unit Tests - Average Score Recalculation
"""
import asyncio
from decimal import Decimal
import uuid

import pytest

from commerce_hub.database import COMMERCE_COLLECTIONS, EntityStore
from commerce_hub.errors import InvalidReference, NotFound, StoreUnavailable
from commerce_hub.services import ReviewService, average_score


class ScoreWriteFailingStore(EntityStore):
    """Store that cannot write average scores"""

    async def update(self, collection, id, patch):
        if collection == "products" and "average_score" in patch:
            raise StoreUnavailable("commerce store unavailable during update")
        return await super().update(collection, id, patch)


def review(user, product, score):
    return {"user_id": user["id"], "product_id": product["id"], "score": score, "content": "ok"}


class TestAverageScore:
    """Tests for the mean computation"""

    def test_empty_is_none(self):
        assert average_score([]) is None

    def test_mean_rounded_to_two_places(self):
        assert average_score([5, 4, 4]) == Decimal("4.33")
        assert average_score([1, 2]) == Decimal("1.50")

    def test_rounds_half_up(self):
        # 4.125 -> 4.13
        assert average_score([4, 4, 4, 4, 4, 4, 4, 5]) == Decimal("4.13")


class TestReviewService:
    """Tests for review inserts and the derived average"""

    @pytest.mark.asyncio
    async def test_first_review_sets_average(self, services, user, make_product):
        product = await make_product()

        outcome = await services.reviews.create_review(review(user, product, 4))

        assert outcome.average_score == Decimal("4.00")
        assert not outcome.aggregate_stale
        stored = await services.commerce.get("products", product["id"])
        assert stored["average_score"] == Decimal("4.00")

    @pytest.mark.asyncio
    async def test_sequential_reviews_update_mean(self, services, user, make_product):
        product = await make_product()

        await services.reviews.create_review(review(user, product, 4))
        await services.reviews.create_review(review(user, product, 2))

        stored = await services.commerce.get("products", product["id"])
        assert stored["average_score"] == Decimal("3.00")

    @pytest.mark.asyncio
    async def test_reviews_of_other_products_do_not_count(self, services, user, make_product):
        a = await make_product("A")
        b = await make_product("B")

        await services.reviews.create_review(review(user, a, 5))
        await services.reviews.create_review(review(user, b, 1))

        assert (await services.commerce.get("products", a["id"]))["average_score"] == Decimal("5.00")
        assert (await services.commerce.get("products", b["id"]))["average_score"] == Decimal("1.00")

    @pytest.mark.asyncio
    async def test_unknown_product_is_rejected(self, services, user):
        ghost = {"id": str(uuid.uuid4())}

        with pytest.raises(InvalidReference):
            await services.reviews.create_review(review(user, ghost, 3))

        assert await services.commerce.query("reviews") == []

    @pytest.mark.asyncio
    async def test_unknown_user_is_rejected(self, services, make_product):
        product = await make_product()

        with pytest.raises(InvalidReference):
            await services.reviews.create_review(review({"id": str(uuid.uuid4())}, product, 3))

    @pytest.mark.asyncio
    async def test_failed_recompute_keeps_review(self, services, user, make_product):
        product = await make_product()
        failing = ReviewService(ScoreWriteFailingStore(services.commerce_db, COMMERCE_COLLECTIONS))

        outcome = await failing.create_review(review(user, product, 5))

        assert outcome.aggregate_stale
        assert outcome.failure.reason == "partial_failure"
        assert isinstance(outcome.failure.cause, StoreUnavailable)
        assert len(await services.commerce.query("reviews", {"product_id": product["id"]})) == 1
        assert (await services.commerce.get("products", product["id"]))["average_score"] is None

    @pytest.mark.asyncio
    async def test_serialized_concurrent_reviews_converge(self, services, user, make_product):
        product = await make_product()
        reviews = ReviewService(services.commerce, serialize_recompute=True)
        scores = [5, 4, 3, 1]

        await asyncio.gather(*(reviews.create_review(review(user, product, s)) for s in scores))

        stored = await services.commerce.get("products", product["id"])
        assert stored["average_score"] == average_score(scores)

    @pytest.mark.asyncio
    async def test_concurrent_reviews_all_persist_without_lock(self, services, user, make_product):
        product = await make_product()
        scores = [5, 4, 3, 1]

        outcomes = await asyncio.gather(
            *(services.reviews.create_review(review(user, product, s)) for s in scores)
        )

        stored_reviews = await services.commerce.query("reviews", {"product_id": product["id"]})
        assert len(stored_reviews) == len(scores)
        assert sorted(r["score"] for r in stored_reviews) == sorted(scores)
        assert not any(outcome.aggregate_stale for outcome in outcomes)
        stored = await services.commerce.get("products", product["id"])
        assert stored["average_score"] is not None

    @pytest.mark.asyncio
    async def test_list_for_product(self, services, user, make_product):
        product = await make_product()
        await services.reviews.create_review(review(user, product, 3))

        listed = await services.reviews.list_for_product(product["id"])

        assert [r["score"] for r in listed] == [3]
        with pytest.raises(NotFound):
            await services.reviews.list_for_product(str(uuid.uuid4()))
