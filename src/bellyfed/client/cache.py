"""Per-dish ranking cache with a fixed expiry window.

Entries are keyed by dish slug and hold the caller's most recent ranking as
returned by the API. The cache is advisory: callers fall through to the API
on a miss, and mutations only touch it after the server confirms them.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis

DEFAULT_TTL_SECONDS = 300


class RankingCache(ABC):
    """Storage-agnostic cache of rankings keyed by dish slug."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    def get(self, dish_slug: str) -> dict[str, Any] | None:
        """Return the cached ranking, or None on a miss or expiry."""

    @abstractmethod
    def set(self, dish_slug: str, ranking: dict[str, Any]) -> None:
        """Store a ranking, restarting its expiry window."""

    @abstractmethod
    def invalidate(self, dish_slug: str) -> None:
        """Drop the entry for a dish."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class MemoryRankingCache(RankingCache):
    """In-process cache; expiry is checked on read."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    def get(self, dish_slug: str) -> dict[str, Any] | None:
        entry = self._entries.get(dish_slug)
        if entry is None:
            return None
        expires_at, ranking = entry
        if self._clock() >= expires_at:
            del self._entries[dish_slug]
            return None
        return dict(ranking)

    def set(self, dish_slug: str, ranking: dict[str, Any]) -> None:
        self._entries[dish_slug] = (self._clock() + self.ttl_seconds, dict(ranking))

    def invalidate(self, dish_slug: str) -> None:
        self._entries.pop(dish_slug, None)

    def clear(self) -> None:
        self._entries.clear()


class RedisRankingCache(RankingCache):
    """Redis-backed cache; expiry is delegated to key TTLs."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        prefix: str = "bellyfed:ranking:",
    ) -> None:
        super().__init__(ttl_seconds)
        self._redis = client
        self._prefix = prefix

    def _key(self, dish_slug: str) -> str:
        return f"{self._prefix}{dish_slug}"

    def get(self, dish_slug: str) -> dict[str, Any] | None:
        raw = self._redis.get(self._key(dish_slug))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, dish_slug: str, ranking: dict[str, Any]) -> None:
        self._redis.set(self._key(dish_slug), json.dumps(ranking), ex=self.ttl_seconds)

    def invalidate(self, dish_slug: str) -> None:
        self._redis.delete(self._key(dish_slug))

    def clear(self) -> None:
        keys = list(self._redis.scan_iter(match=f"{self._prefix}*"))
        if keys:
            self._redis.delete(*keys)


def build_ranking_cache(
    backend: str | None = None,
    ttl_seconds: int | None = None,
    redis_url: str | None = None,
) -> RankingCache:
    """Create the cache selected by arguments or, failing that, settings."""
    from bellyfed.core.settings import settings

    backend = (backend or settings.ranking_cache_backend).lower()
    ttl = ttl_seconds or settings.ranking_cache_ttl_seconds
    if backend == "memory":
        return MemoryRankingCache(ttl)
    if backend == "redis":
        return RedisRankingCache(redis.from_url(redis_url or settings.redis_url), ttl)
    raise ValueError(f"Unknown ranking cache backend: {backend}")
