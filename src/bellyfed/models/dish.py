"""SQLAlchemy model for dishes."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bellyfed.db.session import Base
from bellyfed.models.restaurant import Restaurant


class Dish(Base):
    """A dish that users can rank.

    Dishes are read-only from the rankings service's point of view.
    """

    __tablename__ = "dishes"

    dish_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_vegetarian: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    spicy_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    restaurant_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("restaurants.restaurant_id"),
        nullable=True,
    )

    restaurant: Mapped[Restaurant | None] = relationship("Restaurant", lazy="joined")
