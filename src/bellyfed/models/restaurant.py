"""SQLAlchemy model for restaurants."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bellyfed.db.session import Base


class Restaurant(Base):
    """Restaurant serving ranked dishes. Owned by the restaurants service."""

    __tablename__ = "restaurants"

    restaurant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
