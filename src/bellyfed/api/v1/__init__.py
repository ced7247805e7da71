"""Version 1 API endpoints."""

from .endpoints import rankings_router, uploads_router

__all__ = [
    "rankings_router",
    "uploads_router",
]
