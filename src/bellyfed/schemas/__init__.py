"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .ranking import (
    CommunityRanking,
    DishDetails,
    GlobalRankingsResponse,
    GlobalRankingStats,
    LocalRankingsResponse,
    MyRankingResponse,
    MyRankingsResponse,
    RankingCreate,
    RankingDeleteResponse,
    RankingOut,
    RankingStats,
    RankingUpdate,
    TopRestaurant,
    UserRankingsResponse,
)
from .upload import PhotoUploadRequest, PhotoUploadResponse

__all__ = [
    "CommunityRanking",
    "DishDetails",
    "GlobalRankingsResponse", "GlobalRankingStats",
    "LocalRankingsResponse",
    "MyRankingResponse", "MyRankingsResponse",
    "RankingCreate", "RankingDeleteResponse", "RankingOut", "RankingStats", "RankingUpdate",
    "TopRestaurant",
    "UserRankingsResponse",
    "PhotoUploadRequest", "PhotoUploadResponse",
]
