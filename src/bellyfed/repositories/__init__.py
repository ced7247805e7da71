"""Data access layer."""

from .ranking_repo import RankingRepository

__all__ = ["RankingRepository"]
