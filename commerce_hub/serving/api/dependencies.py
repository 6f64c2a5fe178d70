"""
API Dependencies

FastAPI dependency providers. The `Services` container is built in the
application lifespan and stored on `app.state`.
"""

from fastapi import Depends
from starlette.requests import HTTPConnection

from commerce_hub.container import Services
from commerce_hub.services import (
    AnalyticsService,
    CatalogService,
    LookupResolver,
    OrderPricingEngine,
    ReviewService,
    UserService,
)


def get_services(connection: HTTPConnection) -> Services:
    """Services for the current HTTP request or WebSocket connection."""
    services = getattr(connection.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not started. Is the application lifespan running?")
    return services


def get_catalog(services: Services = Depends(get_services)) -> CatalogService:
    return services.catalog


def get_reviews(services: Services = Depends(get_services)) -> ReviewService:
    return services.reviews


def get_orders(services: Services = Depends(get_services)) -> OrderPricingEngine:
    return services.orders


def get_users(services: Services = Depends(get_services)) -> UserService:
    return services.users


def get_events(services: Services = Depends(get_services)) -> AnalyticsService:
    return services.events


def get_lookups(services: Services = Depends(get_services)) -> LookupResolver:
    return services.lookups
