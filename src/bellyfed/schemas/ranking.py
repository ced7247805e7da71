"""Ranking-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from bellyfed.core.enums import TasteStatus

from .common import CamelModel, Pagination


class RankingCreate(CamelModel):
    """Schema for creating a ranking. Exactly one of rank/taste_status is required."""

    dish_id: str = Field(..., min_length=1)
    restaurant_id: str = Field(..., min_length=1)
    dish_type: str | None = None
    rank: int | None = Field(None, strict=True, description="1 (best) to 5")
    taste_status: TasteStatus | None = None
    notes: str | None = None
    photo_urls: list[str] | None = None


class RankingUpdate(CamelModel):
    """Schema for replacing a ranking's mutable fields.

    Omitted optional fields are cleared, not preserved.
    """

    dish_type: str | None = None
    rank: int | None = Field(None, strict=True, description="1 (best) to 5")
    taste_status: TasteStatus | None = None
    notes: str | None = None
    photo_urls: list[str] | None = None


class RankingOut(CamelModel):
    """A stored ranking as returned to its owner."""

    ranking_id: str
    user_id: str
    dish_id: str
    restaurant_id: str
    dish_type: str
    rank: int | None
    taste_status: TasteStatus | None
    notes: str
    photo_urls: list[str]
    created_at: datetime
    updated_at: datetime


class MyRankingSummary(RankingOut):
    """A ranking in the caller's own list, with display names attached."""

    dish_name: str | None = None
    dish_slug: str | None = None
    restaurant_name: str | None = None


class CommunityRanking(CamelModel):
    """Another user's ranking as shown in local/global and profile lists."""

    ranking_id: str
    user_id: str
    username: str
    user_avatar: str | None = None
    user_country_code: str | None = None
    dish_id: str
    restaurant_id: str
    rank: int | None
    taste_status: TasteStatus | None
    notes: str
    photo_count: int
    created_at: datetime


class DishDetails(CamelModel):
    """Dish information attached to ranking responses."""

    dish_id: str
    slug: str
    name: str
    description: str = ""
    restaurant_id: str | None = None
    restaurant_name: str | None = None
    category: str = ""
    image_url: str = ""
    is_vegetarian: bool = False
    spicy_level: int = 0
    price: float = 0.0
    country_code: str = ""


class RankingStats(CamelModel):
    """Aggregate counts over a population of rankings."""

    total_rankings: int
    average_rank: float
    ranks: dict[str, int]
    taste_statuses: dict[str, int]


class TopRestaurant(CamelModel):
    """Restaurant ranked best for a dish."""

    restaurant_id: str
    name: str
    ranking_count: int
    average_rank: float | None


class GlobalRankingStats(RankingStats):
    """Global stats add the country breakdown and best restaurants."""

    country_distribution: dict[str, int]
    top_restaurants: list[TopRestaurant] = Field(default_factory=list)


class MyRankingResponse(CamelModel):
    """Caller's ranking for one dish; user_ranking is None when unranked."""

    user_ranking: RankingOut | None
    dish_details: DishDetails
    ranking_stats: RankingStats


class RankingDeleteResponse(CamelModel):
    """Result of deleting the caller's ranking."""

    success: bool = True
    dish_details: DishDetails
    ranking_stats: RankingStats


class MyRankingsResponse(CamelModel):
    """Page of the caller's own rankings."""

    rankings: list[MyRankingSummary]
    pagination: Pagination


class LocalRankingsResponse(CamelModel):
    """Page of same-country rankings for a dish."""

    dish_details: DishDetails
    country: str
    local_rankings: list[CommunityRanking]
    pagination: Pagination
    stats: RankingStats


class GlobalRankingsResponse(CamelModel):
    """Page of rankings for a dish across all countries."""

    dish_details: DishDetails
    global_rankings: list[CommunityRanking]
    pagination: Pagination
    stats: GlobalRankingStats


class UserRankingsResponse(CamelModel):
    """Page of a user's public rankings and their histograms."""

    user_id: str
    username: str
    avatar_url: str | None = None
    rankings: list[MyRankingSummary]
    pagination: Pagination
    stats: RankingStats
