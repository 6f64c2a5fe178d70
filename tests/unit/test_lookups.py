"""
Unit Tests - Lookup / Join Resolution
"""
from decimal import Decimal
import uuid

import pytest

from commerce_hub.errors import InvalidIdentifier, NotFound


async def record_event(services, kind, visitor, **fields):
    data = {"source": "web", "url": "https://shop.test/", "visitor": visitor, "meta": {}}
    data.update(fields)
    return await services.events.record(kind, data)


class TestProductLookups:

    @pytest.mark.asyncio
    async def test_product_embeds_existing_categories_only(self, services, make_product):
        books = await services.commerce.create("categories", {"name": "Books"})
        gone = str(uuid.uuid4())
        product = await make_product(category_ids=[books["id"], gone])

        resolved = await services.lookups.product(product["id"])

        assert resolved["category_ids"] == [books["id"], gone]
        assert [c["name"] for c in resolved["categories"]] == ["Books"]

    @pytest.mark.asyncio
    async def test_product_missing(self, services):
        with pytest.raises(NotFound):
            await services.lookups.product(str(uuid.uuid4()))
        with pytest.raises(InvalidIdentifier):
            await services.lookups.product("zzz")

    @pytest.mark.asyncio
    async def test_products_filters(self, services, make_product):
        await make_product("Blue Kettle", "30.00", about="Boils water")
        await make_product("Red Kettle", "45.00", about="Boils water fast")
        await make_product("Mug", "8.00", about="Holds tea")

        by_name = await services.lookups.products(name="KETTLE")
        by_about = await services.lookups.products(about="tea")
        by_price = await services.lookups.products(max_price=Decimal("30"))
        combined = await services.lookups.products(name="kettle", max_price=Decimal("40"))

        assert [p["name"] for p in by_name] == ["Blue Kettle", "Red Kettle"]
        assert [p["name"] for p in by_about] == ["Mug"]
        assert [p["name"] for p in by_price] == ["Blue Kettle", "Mug"]
        assert [p["name"] for p in combined] == ["Blue Kettle"]

    @pytest.mark.asyncio
    async def test_products_with_categories_batch(self, services, make_product):
        a = await services.commerce.create("categories", {"name": "A"})
        b = await services.commerce.create("categories", {"name": "B"})
        await make_product("One", category_ids=[b["id"], a["id"]])
        await make_product("Two", category_ids=[])

        resolved = await services.lookups.products(with_categories=True)

        assert [c["name"] for c in resolved[0]["categories"]] == ["B", "A"]
        assert resolved[1]["categories"] == []


class TestOrderLookups:

    @pytest.mark.asyncio
    async def test_order_resolves_user_and_current_products(self, services, user, make_product):
        a = await make_product("A", "10.00")
        b = await make_product("B", "15.00")
        order = await services.orders.create_order(user["id"], [a["id"], b["id"]])
        await services.commerce.update("products", a["id"], {"name": "A v2"})
        await services.commerce.delete("products", b["id"])

        resolved = await services.lookups.order(order["id"])

        assert resolved["user"] == {"id": user["id"], "username": "ada", "email": "ada@example.com"}
        assert [p["name"] for p in resolved["products"]] == ["A v2"]
        assert resolved["total"] == Decimal("30.00")

    @pytest.mark.asyncio
    async def test_orders_list(self, services, user, make_product):
        a = await make_product("A")
        await services.orders.create_order(user["id"], [a["id"]])
        await services.orders.create_order(user["id"], [a["id"], a["id"]])

        orders = await services.lookups.orders()

        assert len(orders) == 2
        assert all(o["user"]["id"] == user["id"] for o in orders)
        assert [len(o["products"]) for o in orders] == [1, 1]
        assert "password" not in orders[0]["user"]


class TestGoalDetails:

    @pytest.mark.asyncio
    async def test_goal_details_collects_visitor_activity(self, services):
        for n in range(3):
            await record_event(services, "views", "v-1", url=f"https://shop.test/{n}")
        for name in ("click", "scroll"):
            await record_event(services, "actions", "v-1", action=name)
        await record_event(services, "views", "v-2")
        await record_event(services, "actions", "v-2", action="click")
        goal = await record_event(services, "goals", "v-1", goal="signup")

        details = await services.lookups.goal_details(goal["id"])

        assert details["goal"]["id"] == goal["id"]
        assert len(details["views"]) == 3
        assert [a["action"] for a in details["actions"]] == ["click", "scroll"]
        assert all(v["visitor"] == "v-1" for v in details["views"])

    @pytest.mark.asyncio
    async def test_goal_without_activity(self, services):
        goal = await record_event(services, "goals", "lonely", goal="signup")

        details = await services.lookups.goal_details(goal["id"])

        assert details["views"] == []
        assert details["actions"] == []

    @pytest.mark.asyncio
    async def test_goal_missing(self, services):
        with pytest.raises(NotFound):
            await services.lookups.goal_details(str(uuid.uuid4()))
