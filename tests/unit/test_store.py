"""
Unit Tests - Entity Store Adapter
"""
from decimal import Decimal
import uuid

import pytest

from commerce_hub.database import AnyOf, AtMost, Contains, parse_id
from commerce_hub.errors import DuplicateRecord, InvalidIdentifier, NotFound


class TestParseId:
    """Tests for external id translation"""

    def test_accepts_uuid_text(self):
        value = str(uuid.uuid4())
        assert str(parse_id(value)) == value

    @pytest.mark.parametrize("value", ["not-an-id", "", "1234", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidIdentifier):
            parse_id(value)


class TestEntityStore:
    """Tests for EntityStore CRUD over SQLite"""

    @pytest.mark.asyncio
    async def test_create_assigns_string_id(self, services):
        record = await services.commerce.create("categories", {"name": "Books"})

        assert isinstance(record["id"], str)
        assert parse_id(record["id"])
        assert record["name"] == "Books"
        assert record["created_at"] is not None

    @pytest.mark.asyncio
    async def test_get_round_trip(self, services, make_product):
        product = await make_product("Lamp", "19.99", category_ids=["a", "b"])

        fetched = await services.commerce.get("products", product["id"])

        assert fetched["name"] == "Lamp"
        assert fetched["price"] == Decimal("19.99")
        assert fetched["category_ids"] == ["a", "b"]
        assert fetched["average_score"] is None

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, services):
        with pytest.raises(NotFound) as exc_info:
            await services.commerce.get("products", str(uuid.uuid4()))

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_get_malformed_id_raises_invalid_identifier(self, services):
        with pytest.raises(InvalidIdentifier) as exc_info:
            await services.commerce.get("products", "42")

        assert exc_info.value.status_code == 400
        assert exc_info.value.reason == "invalid_identifier"

    @pytest.mark.asyncio
    async def test_query_any_of(self, services, make_product):
        first = await make_product("First")
        await make_product("Second")
        third = await make_product("Third")

        found = await services.commerce.query("products", {"id": AnyOf([third["id"], first["id"]])})

        assert [p["name"] for p in found] == ["First", "Third"]

    @pytest.mark.asyncio
    async def test_query_empty_any_of_matches_nothing(self, services, make_product):
        await make_product()

        assert await services.commerce.query("products", {"id": AnyOf([])}) == []

    @pytest.mark.asyncio
    async def test_query_contains_is_case_insensitive(self, services, make_product):
        await make_product("Blue Kettle")
        await make_product("Red Mug")

        found = await services.commerce.query("products", {"name": Contains("kettle")})

        assert [p["name"] for p in found] == ["Blue Kettle"]

    @pytest.mark.asyncio
    async def test_query_at_most_is_inclusive(self, services, make_product):
        await make_product("Cheap", "5.00")
        await make_product("Edge", "10.00")
        await make_product("Pricey", "10.01")

        found = await services.commerce.query("products", {"price": AtMost(Decimal("10.00"))})

        assert sorted(p["name"] for p in found) == ["Cheap", "Edge"]

    @pytest.mark.asyncio
    async def test_query_orders_by_creation(self, services):
        names = ["one", "two", "three", "four"]
        for name in names:
            await services.commerce.create("categories", {"name": name})

        found = await services.commerce.query("categories")

        assert [c["name"] for c in found] == names

    @pytest.mark.asyncio
    async def test_update_returns_matched_count(self, services, make_product):
        product = await make_product()

        assert await services.commerce.update("products", product["id"], {"name": "Renamed"}) == 1
        assert await services.commerce.update("products", str(uuid.uuid4()), {"name": "x"}) == 0
        assert (await services.commerce.get("products", product["id"]))["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_returns_deleted_count(self, services, make_product):
        product = await make_product()

        assert await services.commerce.delete("products", product["id"]) == 1
        assert await services.commerce.delete("products", product["id"]) == 0
        with pytest.raises(NotFound):
            await services.commerce.get("products", product["id"])

    @pytest.mark.asyncio
    async def test_unique_violation_maps_to_duplicate_record(self, services):
        data = {"username": "a", "email": "same@example.com", "password": "x" * 128}
        await services.commerce.create("users", data)

        with pytest.raises(DuplicateRecord) as exc_info:
            await services.commerce.create("users", {**data, "username": "b"})

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_stores_are_independent(self, services):
        await services.analytics.create("views", {
            "source": "web",
            "url": "https://shop.test/",
            "visitor": "v-1",
            "meta": {"ref": "ad"},
        })

        assert len(await services.analytics.query("views")) == 1
        with pytest.raises(ValueError):
            await services.commerce.query("views")
