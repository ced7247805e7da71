"""Python client for the Bellyfed rankings API.

Holds the caller's rankings in a reducer-backed store and keeps a short-lived
per-dish cache in front of the HTTP API.
"""

from .api import RankingsClient
from .cache import MemoryRankingCache, RankingCache, RedisRankingCache, build_ranking_cache
from .state import (
    AddRanking,
    DeleteRanking,
    RankingsState,
    RankingsStore,
    SetRankings,
    UpdateRanking,
    reduce,
)

__all__ = [
    "RankingsClient",
    "MemoryRankingCache", "RankingCache", "RedisRankingCache", "build_ranking_cache",
    "AddRanking", "DeleteRanking", "RankingsState", "RankingsStore", "SetRankings",
    "UpdateRanking", "reduce",
]
