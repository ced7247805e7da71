"""Best-effort engagement analytics.

Ranking mutations report an engagement event after they commit. Delivery is
fire-and-forget: failures are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from bellyfed.core.settings import settings
from bellyfed.db.time import utcnow

logger = logging.getLogger(__name__)


class EngagementType(str, Enum):
    """Engagement events emitted by the rankings service."""

    RANKING_CREATED = "RANKING_CREATED"
    RANKING_UPDATED = "RANKING_UPDATED"
    RANKING_DELETED = "RANKING_DELETED"


@dataclass(frozen=True)
class EngagementEvent:
    """Single engagement event."""

    event_type: EngagementType
    user_id: str
    target_id: str
    target_type: str = "DISH"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "eventType": self.event_type.value,
            "userId": self.user_id,
            "targetId": self.target_id,
            "targetType": self.target_type,
            "metadata": self.metadata,
            "timestamp": utcnow().isoformat(),
        }


@dataclass(frozen=True)
class AnalyticsConfig:
    """Immutable configuration for analytics delivery."""

    enabled: bool
    url: str | None
    timeout_seconds: float


def load_analytics_config() -> AnalyticsConfig:
    """Build configuration object from global settings."""
    return AnalyticsConfig(
        enabled=bool(settings.analytics_enabled and settings.analytics_url),
        url=settings.analytics_url,
        timeout_seconds=float(settings.analytics_timeout_seconds),
    )


class AnalyticsClient:
    """HTTP client wrapper for the analytics collector."""

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_analytics_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def track(self, event: EngagementEvent) -> bool:
        """Send an event. Returns False when it was dropped."""
        if not self.enabled:
            return False

        try:
            client = await self._ensure_client()
            response = await client.post(self.config.url or "", json=event.to_payload())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "Dropped %s event for user %s: %s",
                event.event_type.value,
                event.user_id,
                exc,
            )
            return False
        return True

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _AnalyticsClientSingleton:
    """Singleton wrapper for AnalyticsClient."""

    _instance: AnalyticsClient | None = None

    @classmethod
    def get_instance(cls) -> AnalyticsClient:
        if cls._instance is None:
            cls._instance = AnalyticsClient()
        return cls._instance


def get_analytics_client() -> AnalyticsClient:
    """Return a singleton analytics client instance."""
    return _AnalyticsClientSingleton.get_instance()
