"""
Integration Tests - Live Channel

Runs the full application lifespan through Starlette's TestClient, which
also drives the WebSocket.
"""
import pytest
from fastapi.testclient import TestClient

from commerce_hub.main import create_app

pytestmark = pytest.mark.integration


@pytest.fixture
def live_client(test_settings):
    with TestClient(create_app(test_settings)) as client:
        yield client


def test_catalog_mutations_are_pushed(live_client):
    with live_client.websocket_connect("/live") as websocket:
        created = live_client.post("/products", json={
            "name": "Lamp",
            "about": "Bright",
            "price": 20,
            "categoryIds": [],
        }).json()
        live_client.put(f"/products/{created['id']}", json={
            "name": "Desk Lamp",
            "about": "Bright",
            "price": 25,
            "categoryIds": [],
        })
        live_client.delete(f"/products/{created['id']}")

        messages = [websocket.receive_json() for _ in range(3)]

    assert messages[0] == {"event": "products", "data": {"type": "create", "product": created}}
    assert messages[1]["data"]["type"] == "update"
    assert messages[1]["data"]["product"]["name"] == "Desk Lamp"
    assert messages[1]["data"]["product"]["price"] == 25.0
    assert messages[2] == {"event": "products", "data": {"type": "delete", "product": {"id": created["id"]}}}


def test_category_events_use_category_channel(live_client):
    with live_client.websocket_connect("/live") as websocket:
        category = live_client.post("/categories", json={"name": "Books"}).json()

        message = websocket.receive_json()

    assert message == {"event": "categories", "data": {"type": "create", "category": category}}


def test_failed_write_is_not_broadcast(live_client):
    with live_client.websocket_connect("/live") as websocket:
        missing = live_client.delete("/categories/00000000-0000-0000-0000-000000000000")
        category = live_client.post("/categories", json={"name": "Toys"}).json()

        message = websocket.receive_json()

    assert missing.status_code == 404
    assert message["data"]["category"]["id"] == category["id"]


def test_every_client_receives_events(live_client):
    with live_client.websocket_connect("/live") as first, live_client.websocket_connect("/live") as second:
        category = live_client.post("/categories", json={"name": "Garden"}).json()

        for websocket in (first, second):
            assert websocket.receive_json()["data"]["category"] == category
