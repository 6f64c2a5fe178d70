"""
Database Module
"""
from .connection import Database
from .models import (
    ANALYTICS_COLLECTIONS,
    COMMERCE_COLLECTIONS,
    AnalyticsBase,
    CommerceBase,
)
from .store import AnyOf, AtMost, Contains, EntityStore, parse_id

__all__ = [
    "Database",
    "EntityStore",
    "AnyOf",
    "AtMost",
    "Contains",
    "parse_id",
    "CommerceBase",
    "AnalyticsBase",
    "COMMERCE_COLLECTIONS",
    "ANALYTICS_COLLECTIONS",
]
