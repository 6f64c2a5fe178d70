"""
API Routes Module
"""
from .analytics import router as analytics_router
from .categories import router as categories_router
from .health import router as health_router
from .live import router as live_router
from .orders import router as orders_router
from .products import router as products_router
from .reviews import router as reviews_router
from .users import router as users_router

__all__ = [
    "analytics_router",
    "categories_router",
    "health_router",
    "live_router",
    "orders_router",
    "products_router",
    "reviews_router",
    "users_router",
]
