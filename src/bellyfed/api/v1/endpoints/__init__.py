"""API endpoint modules for version 1."""

from .rankings import router as rankings_router
from .uploads import router as uploads_router

__all__ = [
    "rankings_router",
    "uploads_router",
]
