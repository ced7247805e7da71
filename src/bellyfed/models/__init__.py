"""SQLAlchemy models for the Bellyfed rankings service."""

from .dish import Dish
from .ranking import DishRanking, TasteStatus
from .restaurant import Restaurant
from .user import User

__all__ = [
    "Dish",
    "DishRanking", "TasteStatus",
    "Restaurant",
    "User",
]
