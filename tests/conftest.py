"""
Test Suite Configuration

Both stores run on SQLite files under tmp_path (aiosqlite); the broadcast
hub is the in-memory one. HTTP tests talk to the app through httpx's
ASGITransport with pre-built services, so the lifespan is not involved.
"""
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from commerce_hub.broadcast import MutationEvent
from commerce_hub.config.settings import (
    AnalyticsDatabaseSettings,
    BroadcastSettings,
    DatabaseSettings,
    MonitoringSettings,
    Settings,
)
from commerce_hub.container import Services
from commerce_hub.main import create_app


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


class RecordingPublisher:
    """Publisher that keeps every event it is handed"""

    def __init__(self):
        self.events: List[MutationEvent] = []

    async def publish(self, event: MutationEvent) -> None:
        self.events.append(event)


class FailingPublisher:
    """Publisher whose transport is always down"""

    def __init__(self):
        self.attempts = 0

    async def publish(self, event: MutationEvent) -> None:
        self.attempts += 1
        raise ConnectionError("broadcast transport unavailable")


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        database=DatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'commerce.db'}",
            create_tables=True,
        ),
        analytics_database=AnalyticsDatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}",
            create_tables=True,
        ),
        broadcast=BroadcastSettings(backend="memory", subscriber_queue_size=10),
        monitoring=MonitoringSettings(log_level="DEBUG", log_format="console"),
    )


@pytest_asyncio.fixture
async def services(test_settings) -> AsyncGenerator[Services, None]:
    """Started services on fresh stores"""
    started = await Services.start(test_settings)
    try:
        yield started
    finally:
        await started.close()


@pytest.fixture
def app(test_settings, services) -> FastAPI:
    return create_app(test_settings, services=services)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Return an HTTPX async client pointing at the FastAPI app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def user(services) -> Dict[str, Any]:
    return await services.users.create({
        "username": "ada",
        "email": "ada@example.com",
        "password": "correct-horse",
    })


@pytest.fixture
def make_product(services):
    """Insert a product straight into the store (no broadcast)"""

    async def _make(name: str = "Widget", price: str = "10.00", **fields: Any) -> Dict[str, Any]:
        record = {"name": name, "about": f"About {name}", "price": Decimal(price), "category_ids": []}
        record.update(fields)
        return await services.commerce.create("products", record)

    return _make


@pytest.fixture
def recorder() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def failing_publisher() -> FailingPublisher:
    return FailingPublisher()
