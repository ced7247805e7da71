"""Ranking endpoints for the Bellyfed API."""

from fastapi import APIRouter, Query, status

from bellyfed.schemas.ranking import (
    GlobalRankingsResponse,
    LocalRankingsResponse,
    MyRankingResponse,
    MyRankingsResponse,
    RankingCreate,
    RankingDeleteResponse,
    RankingUpdate,
    UserRankingsResponse,
)

from ..dependencies import CurrentUserDep, RankingServiceDep

router = APIRouter(prefix="/rankings", tags=["rankings"])

PageQuery = Query(1, ge=1, description="1-based page number")
LimitQuery = Query(None, ge=1, description="Page size; capped by RANKINGS_MAX_PAGE_SIZE")


@router.get("/my", response_model=MyRankingsResponse)
async def list_my_rankings(
    current_user: CurrentUserDep,
    service: RankingServiceDep,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> MyRankingsResponse:
    """List the caller's rankings, most recently updated first."""
    return service.list_my_rankings(current_user, page, limit)


@router.get("/my/{dish_slug}", response_model=MyRankingResponse)
async def get_my_ranking(
    dish_slug: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> MyRankingResponse:
    """Get the caller's ranking for a dish; ``userRanking`` is null if unranked."""
    return service.get_my_ranking(current_user, dish_slug)


@router.post(
    "/my/{dish_slug}",
    response_model=MyRankingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_my_ranking(
    dish_slug: str,
    payload: RankingCreate,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> MyRankingResponse:
    """Rank a dish. A second ranking for the same dish is a conflict."""
    return service.create_ranking(current_user, dish_slug, payload)


@router.put("/my/{dish_slug}", response_model=MyRankingResponse)
async def update_my_ranking(
    dish_slug: str,
    payload: RankingUpdate,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> MyRankingResponse:
    """Replace the caller's ranking for a dish."""
    return service.update_ranking(current_user, dish_slug, payload)


@router.delete("/my/{dish_slug}", response_model=RankingDeleteResponse)
async def delete_my_ranking(
    dish_slug: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> RankingDeleteResponse:
    """Delete the caller's ranking for a dish."""
    return service.delete_ranking(current_user, dish_slug)


@router.get("/local/{dish_slug}", response_model=LocalRankingsResponse)
async def get_local_rankings(
    dish_slug: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
    country: str | None = Query(None, description="Country code; defaults to the caller's"),
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> LocalRankingsResponse:
    """List same-country rankings for a dish with local stats."""
    return service.get_local_rankings(
        dish_slug,
        country or current_user.country_code,
        page,
        limit,
    )


@router.get("/global/{dish_slug}", response_model=GlobalRankingsResponse)
async def get_global_rankings(
    dish_slug: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> GlobalRankingsResponse:
    """List rankings for a dish across all countries with global stats."""
    return service.get_global_rankings(dish_slug, page, limit)


@router.get("/user/{user_id}", response_model=UserRankingsResponse)
async def get_user_rankings(
    user_id: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> UserRankingsResponse:
    """List another user's rankings."""
    return service.get_user_rankings(user_id, page, limit)


@router.put("/{ranking_id}", response_model=MyRankingResponse)
async def update_ranking(
    ranking_id: str,
    payload: RankingUpdate,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> MyRankingResponse:
    """Replace a ranking by id. Only its owner may do so."""
    return service.update_ranking_by_id(current_user, ranking_id, payload)


@router.delete("/{ranking_id}", response_model=RankingDeleteResponse)
async def delete_ranking(
    ranking_id: str,
    current_user: CurrentUserDep,
    service: RankingServiceDep,
) -> RankingDeleteResponse:
    """Delete a ranking by id. Only its owner may do so."""
    return service.delete_ranking_by_id(current_user, ranking_id)
