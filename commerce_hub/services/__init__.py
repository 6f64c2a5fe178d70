"""
Services Module
"""
from .analytics import AnalyticsService
from .catalog import CatalogService, public_payload
from .lookups import LookupResolver
from .orders import OrderPricingEngine, price_order
from .reviews import ReviewOutcome, ReviewService, average_score
from .users import UserService, hash_password, public_user

__all__ = [
    "AnalyticsService",
    "CatalogService",
    "public_payload",
    "LookupResolver",
    "OrderPricingEngine",
    "price_order",
    "ReviewOutcome",
    "ReviewService",
    "average_score",
    "UserService",
    "hash_password",
    "public_user",
]
