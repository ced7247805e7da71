"""Business logic services for the Bellyfed rankings service."""

from .analytics import AnalyticsClient, EngagementEvent, EngagementType
from .ranking_service import RankingService
from .stats import StatsBucket, compute_stats
from .uploads import PhotoUploadService, UploadSlot

__all__ = [
    "AnalyticsClient", "EngagementEvent", "EngagementType",
    "RankingService",
    "StatsBucket", "compute_stats",
    "PhotoUploadService", "UploadSlot",
]
