"""Models capturing a user's ranking of a dish."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bellyfed.core.enums import TasteStatus
from bellyfed.db.session import Base
from bellyfed.db.time import utcnow
from bellyfed.models.user import User


class DishRanking(Base):
    """One user's assessment of one dish.

    A row carries either a numeric rank (1 = best) or a taste status, never
    both and never neither.
    """

    __tablename__ = "dish_rankings"
    __table_args__ = (
        # One ranking per user and dish; concurrent creates race on this.
        UniqueConstraint("user_id", "dish_id", name="uq_dish_rankings_user_dish"),
        CheckConstraint(
            "rank IS NULL OR (rank >= 1 AND rank <= 5)",
            name="ck_dish_rankings_rank_range",
        ),
        CheckConstraint(
            "(rank IS NULL) <> (taste_status IS NULL)",
            name="ck_dish_rankings_rank_xor_taste",
        ),
        Index("ix_dish_rankings_dish_created", "dish_id", "created_at"),
    )

    ranking_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    dish_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("dishes.dish_id", ondelete="CASCADE"),
        nullable=False,
    )
    restaurant_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("restaurants.restaurant_id"),
        nullable=False,
    )
    # Copied from the dish at write time; not kept in sync with dish edits.
    dish_type: Mapped[str] = mapped_column(Text, nullable=False, default="Other")

    rank: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    taste_status: Mapped[TasteStatus | None] = mapped_column(
        Enum(TasteStatus, native_enum=False, length=32, create_constraint=False),
        nullable=True,
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    photo_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    user: Mapped[User] = relationship("User", lazy="joined")
