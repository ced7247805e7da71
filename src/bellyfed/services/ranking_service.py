"""Business logic for dish rankings.

Each mutation and the stats recomputation that follows it share one
transaction, so a response never reports stats for a half-applied write.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bellyfed.core.errors import (
    BellyfedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bellyfed.core.settings import settings
from bellyfed.models import Dish, DishRanking, Restaurant, User
from bellyfed.repositories.ranking_repo import RankingRepository
from bellyfed.schemas.common import Pagination
from bellyfed.schemas.ranking import (
    CommunityRanking,
    DishDetails,
    GlobalRankingsResponse,
    GlobalRankingStats,
    LocalRankingsResponse,
    MyRankingResponse,
    MyRankingsResponse,
    MyRankingSummary,
    RankingCreate,
    RankingDeleteResponse,
    RankingOut,
    RankingStats,
    RankingUpdate,
    TopRestaurant,
    UserRankingsResponse,
)
from bellyfed.services.analytics import EngagementEvent, EngagementType
from bellyfed.assessment import parse_assessment
from bellyfed.services.stats import StatsBucket, compute_stats

logger = logging.getLogger(__name__)

EventSink = Callable[[EngagementEvent], None]
DEFAULT_DISH_TYPE = "Other"


@dataclass(frozen=True)
class PageRequest:
    """Validated page coordinates."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def describe(self, total: int) -> Pagination:
        return Pagination(
            total=total,
            page=self.page,
            limit=self.limit,
            pages=math.ceil(total / self.limit) if total else 0,
        )


def page_request(page: int | None, limit: int | None) -> PageRequest:
    """Validate pagination input against the configured page size cap.

    Raises:
        ValidationError: If page < 1 or limit is outside [1, max page size].
    """
    page = 1 if page is None else page
    limit = settings.rankings_default_page_size if limit is None else limit
    if page < 1:
        raise ValidationError("Page must be 1 or greater")
    if not 1 <= limit <= settings.rankings_max_page_size:
        raise ValidationError(
            f"Limit must be between 1 and {settings.rankings_max_page_size}"
        )
    return PageRequest(page=page, limit=limit)


def dish_details(dish: Dish) -> DishDetails:
    """Convert a Dish ORM instance to its API schema."""
    return DishDetails(
        dish_id=dish.dish_id,
        slug=dish.slug,
        name=dish.name,
        description=dish.description or "",
        restaurant_id=dish.restaurant_id,
        restaurant_name=dish.restaurant.name if dish.restaurant else None,
        category=dish.category or "",
        image_url=dish.image_url or "",
        is_vegetarian=bool(dish.is_vegetarian),
        spicy_level=dish.spicy_level or 0,
        price=float(dish.price or 0),
        country_code=dish.country_code or "",
    )


def community_ranking(ranking: DishRanking, owner: User) -> CommunityRanking:
    return CommunityRanking(
        ranking_id=ranking.ranking_id,
        user_id=owner.user_id,
        username=owner.username,
        user_avatar=owner.avatar_url,
        user_country_code=owner.country_code,
        dish_id=ranking.dish_id,
        restaurant_id=ranking.restaurant_id,
        rank=ranking.rank,
        taste_status=ranking.taste_status,
        notes=ranking.notes,
        photo_count=len(ranking.photo_urls or []),
        created_at=ranking.created_at,
    )


def ranking_summary(
    ranking: DishRanking,
    dish: Dish,
    restaurant: Restaurant | None,
) -> MyRankingSummary:
    return MyRankingSummary.model_validate(
        {
            **RankingOut.model_validate(ranking).model_dump(),
            "dish_name": dish.name,
            "dish_slug": dish.slug,
            "restaurant_name": restaurant.name if restaurant else None,
        }
    )


class RankingService:
    """Create, read, update and delete rankings and their aggregates."""

    def __init__(
        self,
        session: Session,
        *,
        repo: RankingRepository | None = None,
        emit: EventSink | None = None,
    ) -> None:
        self.session = session
        self.repo = repo or RankingRepository(session)
        self._emit = emit

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _store_errors(self, operation: str, user_id: str | None, target: str) -> Iterator[None]:
        """Roll back and translate store failures into an internal error."""
        try:
            yield
        except BellyfedError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(
                "Store failure during %s (user=%s, target=%s)",
                operation,
                user_id,
                target,
                exc_info=True,
            )
            raise BellyfedError("Internal server error") from exc

    @contextmanager
    def _transaction(self, operation: str, user_id: str | None, target: str) -> Iterator[None]:
        """Commit on success; roll back and translate store failures."""
        with self._store_errors(operation, user_id, target):
            yield
            self.session.commit()

    def _publish(self, event_type: EngagementType, user_id: str, dish_id: str, **metadata: object) -> None:
        if self._emit is None:
            return
        self._emit(
            EngagementEvent(
                event_type=event_type,
                user_id=user_id,
                target_id=dish_id,
                metadata=dict(metadata),
            )
        )

    def _get_dish_or_404(self, dish_slug: str) -> Dish:
        dish = self.repo.get_dish_by_slug(dish_slug)
        if dish is None:
            raise NotFoundError("Dish not found")
        return dish

    def _get_owned_ranking(self, user: User, ranking_id: str) -> DishRanking:
        ranking = self.repo.get_ranking(ranking_id)
        if ranking is None:
            raise NotFoundError("Ranking not found")
        if ranking.user_id != user.user_id:
            raise PermissionDeniedError("You can only modify your own rankings")
        return ranking

    def _dish_stats(self, dish_id: str, country: str | None = None) -> RankingStats:
        stats = compute_stats(
            StatsBucket(rank, taste, code, count)
            for rank, taste, code, count in self.repo.stats_buckets(dish_id, country)
        )
        return RankingStats.model_validate(stats.as_dict())

    def _global_stats(self, dish_id: str) -> GlobalRankingStats:
        stats = compute_stats(
            (
                StatsBucket(rank, taste, code, count)
                for rank, taste, code, count in self.repo.stats_buckets(dish_id)
            ),
            include_countries=True,
            country_limit=settings.country_distribution_size,
        )
        top = [
            TopRestaurant(
                restaurant_id=restaurant_id,
                name=name,
                ranking_count=count,
                average_rank=average,
            )
            for restaurant_id, name, count, average in self.repo.top_restaurants(
                dish_id, settings.top_restaurants_limit
            )
        ]
        return GlobalRankingStats.model_validate({**stats.as_dict(), "top_restaurants": top})

    def _validated_columns(
        self,
        payload: RankingCreate | RankingUpdate,
        dish: Dish,
    ) -> dict[str, object]:
        """Check a payload and return the column values it sets.

        Runs before any write; raises ValidationError naming the constraint.
        """
        assessment = parse_assessment(payload.rank, payload.taste_status)
        rank, taste_status = assessment.columns

        notes = payload.notes or ""
        if len(notes) > settings.ranking_notes_max_length:
            raise ValidationError(
                f"Notes must be at most {settings.ranking_notes_max_length} characters"
            )

        photo_urls = list(payload.photo_urls or [])
        if len(photo_urls) > settings.ranking_max_photos:
            raise ValidationError(f"At most {settings.ranking_max_photos} photos are allowed")
        if any(not isinstance(url, str) or not url.strip() for url in photo_urls):
            raise ValidationError("Photo URLs must be non-empty strings")

        return {
            "rank": rank,
            "taste_status": taste_status,
            "notes": notes,
            "photo_urls": photo_urls,
            "dish_type": payload.dish_type or dish.category or DEFAULT_DISH_TYPE,
        }

    def _replace(self, ranking: DishRanking, payload: RankingUpdate, dish: Dish) -> None:
        for column, value in self._validated_columns(payload, dish).items():
            setattr(ranking, column, value)
        self.session.flush()

    # ------------------------------------------------------------------
    # Caller's own rankings
    # ------------------------------------------------------------------

    def get_my_ranking(self, user: User, dish_slug: str) -> MyRankingResponse:
        """Return the caller's ranking for a dish, dish details and stats.

        An unranked dish is a valid state: ``user_ranking`` is None.
        """
        with self._store_errors("get_my_ranking", user.user_id, dish_slug):
            dish = self._get_dish_or_404(dish_slug)
            ranking = self.repo.get_user_ranking(user.user_id, dish.dish_id)
            return MyRankingResponse(
                user_ranking=RankingOut.model_validate(ranking) if ranking else None,
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

    def list_my_rankings(self, user: User, page: int | None = None, limit: int | None = None) -> MyRankingsResponse:
        request = page_request(page, limit)
        with self._store_errors("list_my_rankings", user.user_id, f"page={request.page}"):
            rows = self.repo.list_user_rankings(user.user_id, offset=request.offset, limit=request.limit)
            return MyRankingsResponse(
                rankings=[ranking_summary(*row) for row in rows],
                pagination=request.describe(self.repo.count_user_rankings(user.user_id)),
            )

    def create_ranking(self, user: User, dish_slug: str, payload: RankingCreate) -> MyRankingResponse:
        """Create the caller's ranking for a dish.

        Raises:
            NotFoundError: If the dish or restaurant does not exist.
            ValidationError: If the payload breaks a ranking constraint.
            ConflictError: If the caller already ranked this dish.
        """
        dish = self._get_dish_or_404(dish_slug)
        if payload.dish_id != dish.dish_id:
            raise ValidationError("Dish ID does not match dish slug")
        columns = self._validated_columns(payload, dish)

        with self._transaction("create_ranking", user.user_id, dish.dish_id):
            if self.session.get(Restaurant, payload.restaurant_id) is None:
                raise NotFoundError("Restaurant not found")
            if self.repo.get_user_ranking(user.user_id, dish.dish_id) is not None:
                raise ConflictError("Ranking already exists for this dish")

            ranking = self.repo.add_ranking(
                DishRanking(
                    ranking_id=str(uuid.uuid4()),
                    user_id=user.user_id,
                    dish_id=dish.dish_id,
                    restaurant_id=payload.restaurant_id,
                    **columns,
                )
            )
            response = MyRankingResponse(
                user_ranking=RankingOut.model_validate(ranking),
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

        logger.info("User %s ranked dish %s", user.user_id, dish.dish_id)
        self._publish(
            EngagementType.RANKING_CREATED,
            user.user_id,
            dish.dish_id,
            rankingId=ranking.ranking_id,
        )
        return response

    def update_ranking(self, user: User, dish_slug: str, payload: RankingUpdate) -> MyRankingResponse:
        """Replace the caller's ranking for a dish.

        Raises:
            NotFoundError: If the dish or the caller's ranking does not exist.
            ValidationError: If the payload breaks a ranking constraint.
        """
        dish = self._get_dish_or_404(dish_slug)
        self._validated_columns(payload, dish)

        with self._transaction("update_ranking", user.user_id, dish.dish_id):
            ranking = self.repo.get_user_ranking(user.user_id, dish.dish_id)
            if ranking is None:
                raise NotFoundError("Ranking not found")
            self._replace(ranking, payload, dish)
            response = MyRankingResponse(
                user_ranking=RankingOut.model_validate(ranking),
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

        self._publish(
            EngagementType.RANKING_UPDATED,
            user.user_id,
            dish.dish_id,
            rankingId=ranking.ranking_id,
        )
        return response

    def delete_ranking(self, user: User, dish_slug: str) -> RankingDeleteResponse:
        """Delete the caller's ranking for a dish and return refreshed stats.

        Raises:
            NotFoundError: If the dish or the caller's ranking does not exist.
        """
        dish = self._get_dish_or_404(dish_slug)

        with self._transaction("delete_ranking", user.user_id, dish.dish_id):
            ranking = self.repo.get_user_ranking(user.user_id, dish.dish_id)
            if ranking is None:
                raise NotFoundError("Ranking not found")
            ranking_id = ranking.ranking_id
            self.repo.delete_ranking(ranking)
            response = RankingDeleteResponse(
                success=True,
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

        self._publish(EngagementType.RANKING_DELETED, user.user_id, dish.dish_id, rankingId=ranking_id)
        return response

    def update_ranking_by_id(self, user: User, ranking_id: str, payload: RankingUpdate) -> MyRankingResponse:
        """Replace a ranking addressed by id.

        Raises:
            NotFoundError: If the ranking does not exist.
            PermissionDeniedError: If the ranking belongs to another user.
            ValidationError: If the payload breaks a ranking constraint.
        """
        with self._transaction("update_ranking_by_id", user.user_id, ranking_id):
            ranking = self._get_owned_ranking(user, ranking_id)
            dish = self.session.get(Dish, ranking.dish_id)
            if dish is None:
                raise NotFoundError("Dish not found")
            self._replace(ranking, payload, dish)
            response = MyRankingResponse(
                user_ranking=RankingOut.model_validate(ranking),
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

        self._publish(EngagementType.RANKING_UPDATED, user.user_id, dish.dish_id, rankingId=ranking_id)
        return response

    def delete_ranking_by_id(self, user: User, ranking_id: str) -> RankingDeleteResponse:
        """Delete a ranking addressed by id.

        Raises:
            NotFoundError: If the ranking does not exist.
            PermissionDeniedError: If the ranking belongs to another user.
        """
        with self._transaction("delete_ranking_by_id", user.user_id, ranking_id):
            ranking = self._get_owned_ranking(user, ranking_id)
            dish = self.session.get(Dish, ranking.dish_id)
            if dish is None:
                raise NotFoundError("Dish not found")
            self.repo.delete_ranking(ranking)
            response = RankingDeleteResponse(
                success=True,
                dish_details=dish_details(dish),
                ranking_stats=self._dish_stats(dish.dish_id),
            )

        self._publish(EngagementType.RANKING_DELETED, user.user_id, dish.dish_id, rankingId=ranking_id)
        return response

    # ------------------------------------------------------------------
    # Community views
    # ------------------------------------------------------------------

    def get_local_rankings(
        self,
        dish_slug: str,
        country: str | None,
        page: int | None = None,
        limit: int | None = None,
    ) -> LocalRankingsResponse:
        """Return same-country rankings for a dish with their stats."""
        if not country or not country.strip():
            raise ValidationError("Country is required for local rankings")
        country = country.strip().lower()
        request = page_request(page, limit)
        with self._store_errors("get_local_rankings", None, f"{dish_slug}/{country}"):
            dish = self._get_dish_or_404(dish_slug)
            rows = self.repo.list_dish_rankings(
                dish.dish_id,
                country=country,
                offset=request.offset,
                limit=request.limit,
            )
            return LocalRankingsResponse(
                dish_details=dish_details(dish),
                country=country,
                local_rankings=[community_ranking(*row) for row in rows],
                pagination=request.describe(self.repo.count_dish_rankings(dish.dish_id, country)),
                stats=self._dish_stats(dish.dish_id, country),
            )

    def get_global_rankings(
        self,
        dish_slug: str,
        page: int | None = None,
        limit: int | None = None,
    ) -> GlobalRankingsResponse:
        """Return rankings for a dish across all countries with global stats."""
        request = page_request(page, limit)
        with self._store_errors("get_global_rankings", None, dish_slug):
            dish = self._get_dish_or_404(dish_slug)
            rows = self.repo.list_dish_rankings(dish.dish_id, offset=request.offset, limit=request.limit)
            return GlobalRankingsResponse(
                dish_details=dish_details(dish),
                global_rankings=[community_ranking(*row) for row in rows],
                pagination=request.describe(self.repo.count_dish_rankings(dish.dish_id)),
                stats=self._global_stats(dish.dish_id),
            )

    def get_user_rankings(
        self,
        user_id: str,
        page: int | None = None,
        limit: int | None = None,
    ) -> UserRankingsResponse:
        """Return another user's rankings and their rank/taste histograms."""
        request = page_request(page, limit)
        with self._store_errors("get_user_rankings", None, user_id):
            owner = self.repo.get_user(user_id)
            if owner is None:
                raise NotFoundError("User not found")
            rows = self.repo.list_user_rankings(user_id, offset=request.offset, limit=request.limit)
            stats = compute_stats(
                StatsBucket(rank, taste, count=count)
                for rank, taste, count in self.repo.user_stats_buckets(user_id)
            )
            return UserRankingsResponse(
                user_id=owner.user_id,
                username=owner.username,
                avatar_url=owner.avatar_url,
                rankings=[ranking_summary(*row) for row in rows],
                pagination=request.describe(self.repo.count_user_rankings(user_id)),
                stats=RankingStats.model_validate(stats.as_dict()),
            )
