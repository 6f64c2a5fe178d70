"""
Commerce Hub

Commerce and analytics backend: catalog, users, reviews, orders, visitor
analytics and a live feed of catalog mutations.
"""

__version__ = "1.0.0"
