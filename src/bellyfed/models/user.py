"""SQLAlchemy model for user profiles referenced by rankings."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bellyfed.db.session import Base


class User(Base):
    """A Bellyfed member. Identity is managed by the upstream auth provider."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Lowercase short country code, e.g. "my" or "sg".
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
