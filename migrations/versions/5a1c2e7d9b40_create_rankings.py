"""create rankings schema

Revision ID: 5a1c2e7d9b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5a1c2e7d9b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, restaurants, dishes and dish_rankings."""
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("country_code", sa.String(length=8), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_table(
        "restaurants",
        sa.Column("restaurant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("country_code", sa.String(length=8), nullable=True),
        sa.PrimaryKeyConstraint("restaurant_id"),
    )
    op.create_table(
        "dishes",
        sa.Column("dish_id", sa.String(length=64), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_vegetarian", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("spicy_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("country_code", sa.String(length=8), nullable=True),
        sa.Column("restaurant_id", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.restaurant_id"]),
        sa.PrimaryKeyConstraint("dish_id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "dish_rankings",
        sa.Column("ranking_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("dish_id", sa.String(length=64), nullable=False),
        sa.Column("restaurant_id", sa.String(length=64), nullable=False),
        sa.Column("dish_type", sa.Text(), nullable=False),
        sa.Column("rank", sa.SmallInteger(), nullable=True),
        sa.Column("taste_status", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("photo_urls", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "rank IS NULL OR (rank >= 1 AND rank <= 5)",
            name="ck_dish_rankings_rank_range",
        ),
        sa.CheckConstraint(
            "(rank IS NULL) <> (taste_status IS NULL)",
            name="ck_dish_rankings_rank_xor_taste",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dish_id"], ["dishes.dish_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.restaurant_id"]),
        sa.PrimaryKeyConstraint("ranking_id"),
        sa.UniqueConstraint("user_id", "dish_id", name="uq_dish_rankings_user_dish"),
    )
    op.create_index(
        "ix_dish_rankings_dish_created",
        "dish_rankings",
        ["dish_id", "created_at"],
    )


def downgrade() -> None:
    """Drop the rankings schema."""
    op.drop_index("ix_dish_rankings_dish_created", table_name="dish_rankings")
    op.drop_table("dish_rankings")
    op.drop_table("dishes")
    op.drop_table("restaurants")
    op.drop_table("users")
