"""Data access helpers for working with dish rankings."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bellyfed.core.errors import ConflictError
from bellyfed.models import Dish, DishRanking, Restaurant, TasteStatus, User

__all__ = ["RankingRepository"]

UNIQUE_RANKING_CONSTRAINT = "uq_dish_rankings_user_dish"
# SQLite reports the violated columns instead of the constraint name.
_SQLITE_UNIQUE_RANKING = "UNIQUE constraint failed: dish_rankings.user_id, dish_rankings.dish_id"


def is_duplicate_ranking(err: IntegrityError) -> bool:
    """Return True when ``err`` comes from the one-ranking-per-dish constraint."""
    diag = getattr(err.orig, "diag", None)
    if getattr(diag, "constraint_name", None) == UNIQUE_RANKING_CONSTRAINT:
        return True
    message = str(err.orig)
    return UNIQUE_RANKING_CONSTRAINT in message or _SQLITE_UNIQUE_RANKING in message


class RankingRepository:
    """Thin wrapper around database access for ranking entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_dish_by_slug(self, slug: str) -> Dish | None:
        """Return a dish by its URL slug."""
        return self.session.scalars(select(Dish).where(Dish.slug == slug)).first()

    def get_user(self, user_id: str) -> User | None:
        """Return a user by identifier."""
        return self.session.get(User, user_id)

    def get_ranking(self, ranking_id: str) -> DishRanking | None:
        """Return a ranking by identifier."""
        return self.session.get(DishRanking, ranking_id)

    def get_user_ranking(self, user_id: str, dish_id: str) -> DishRanking | None:
        """Return the ranking a user holds for a dish, if any."""
        return self.session.scalars(
            select(DishRanking).where(
                DishRanking.user_id == user_id,
                DishRanking.dish_id == dish_id,
            )
        ).first()

    def add_ranking(self, ranking: DishRanking) -> DishRanking:
        """Insert a ranking inside a savepoint and flush it.

        Raises:
            ConflictError: If the (user, dish) unique constraint rejects the row.
            IntegrityError: If any other constraint rejects the row.
        """
        try:
            with self.session.begin_nested():
                self.session.add(ranking)
        except IntegrityError as err:
            if not is_duplicate_ranking(err):
                raise
            raise ConflictError("Ranking already exists for this dish") from err
        return ranking

    def delete_ranking(self, ranking: DishRanking) -> None:
        """Hard-delete a ranking."""
        self.session.delete(ranking)
        self.session.flush()

    def count_user_rankings(self, user_id: str) -> int:
        return self.session.scalar(
            select(func.count()).select_from(DishRanking).where(DishRanking.user_id == user_id)
        ) or 0

    def list_user_rankings(
        self,
        user_id: str,
        *,
        offset: int,
        limit: int,
    ) -> list[tuple[DishRanking, Dish, Restaurant | None]]:
        """Return a user's rankings with their dish and restaurant, newest first."""
        stmt = (
            select(DishRanking, Dish, Restaurant)
            .join(Dish, Dish.dish_id == DishRanking.dish_id)
            .outerjoin(Restaurant, Restaurant.restaurant_id == DishRanking.restaurant_id)
            .where(DishRanking.user_id == user_id)
            .order_by(DishRanking.updated_at.desc(), DishRanking.ranking_id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [tuple(row) for row in self.session.execute(stmt).all()]  # type: ignore[misc]

    def count_dish_rankings(self, dish_id: str, country: str | None = None) -> int:
        stmt = select(func.count()).select_from(DishRanking).where(DishRanking.dish_id == dish_id)
        if country is not None:
            stmt = stmt.join(User, User.user_id == DishRanking.user_id).where(
                func.lower(User.country_code) == country.lower()
            )
        return self.session.scalar(stmt) or 0

    def list_dish_rankings(
        self,
        dish_id: str,
        *,
        country: str | None = None,
        offset: int,
        limit: int,
    ) -> list[tuple[DishRanking, User]]:
        """Return a page of a dish's rankings with their owners, newest first.

        Args:
            dish_id: Dish whose rankings are listed.
            country: Restrict to owners from this country when given.
            offset: Rows to skip.
            limit: Maximum rows to return; callers cap this.
        """
        stmt = (
            select(DishRanking, User)
            .join(User, User.user_id == DishRanking.user_id)
            .where(DishRanking.dish_id == dish_id)
        )
        if country is not None:
            stmt = stmt.where(func.lower(User.country_code) == country.lower())
        stmt = (
            stmt.order_by(DishRanking.created_at.desc(), DishRanking.ranking_id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [tuple(row) for row in self.session.execute(stmt).all()]  # type: ignore[misc]

    def stats_buckets(
        self, dish_id: str, country: str | None = None
    ) -> list[tuple[int | None, TasteStatus | None, str | None, int]]:
        """Return ranking counts for a dish grouped by rank, taste status and country.

        The grouping keeps the result small regardless of how many rankings
        the dish has.
        """
        stmt = (
            select(
                DishRanking.rank,
                DishRanking.taste_status,
                User.country_code,
                func.count(),
            )
            .join(User, User.user_id == DishRanking.user_id)
            .where(DishRanking.dish_id == dish_id)
        )
        if country is not None:
            stmt = stmt.where(func.lower(User.country_code) == country.lower())
        stmt = stmt.group_by(DishRanking.rank, DishRanking.taste_status, User.country_code)
        return [tuple(row) for row in self.session.execute(stmt).all()]  # type: ignore[misc]

    def user_stats_buckets(self, user_id: str) -> list[tuple[int | None, TasteStatus | None, int]]:
        """Return a user's ranking counts grouped by rank and taste status."""
        stmt = (
            select(DishRanking.rank, DishRanking.taste_status, func.count())
            .where(DishRanking.user_id == user_id)
            .group_by(DishRanking.rank, DishRanking.taste_status)
        )
        return [tuple(row) for row in self.session.execute(stmt).all()]  # type: ignore[misc]

    def top_restaurants(self, dish_id: str, limit: int) -> list[tuple[str, str, int, float | None]]:
        """Return (restaurant_id, name, ranking_count, average_rank) best first.

        Restaurants whose rankings are all taste statuses sort last.
        """
        average_rank = func.avg(DishRanking.rank)
        ranking_count = func.count(DishRanking.ranking_id)
        stmt = (
            select(Restaurant.restaurant_id, Restaurant.name, ranking_count, average_rank)
            .join(DishRanking, DishRanking.restaurant_id == Restaurant.restaurant_id)
            .where(DishRanking.dish_id == dish_id)
            .group_by(Restaurant.restaurant_id, Restaurant.name)
            .order_by(
                average_rank.is_(None),
                average_rank.asc(),
                ranking_count.desc(),
                Restaurant.restaurant_id,
            )
            .limit(limit)
        )
        return [
            (restaurant_id, name, count, float(avg) if avg is not None else None)
            for restaurant_id, name, count, avg in self.session.execute(stmt).all()
        ]
