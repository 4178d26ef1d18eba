"""
API Routes Package

This package contains route handlers organized by feature:
- search.py: Upload grant and face search endpoints
"""

from api.routes.search import router as search_router

__all__ = [
    "search_router",
]
