"""Shared API dependencies for authentication and services."""

from typing import Annotated

from fastapi import BackgroundTasks, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bellyfed.core.errors import AuthError
from bellyfed.core.security import decode_access_token
from bellyfed.db.session import get_db
from bellyfed.models import User
from bellyfed.services.analytics import AnalyticsClient, EngagementEvent, get_analytics_client
from bellyfed.services.ranking_service import RankingService
from bellyfed.services.uploads import PhotoUploadService, get_photo_upload_service

# HTTP Bearer scheme for JWT authentication; missing headers become AuthError.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        AuthError: If the token is missing or invalid, or the user is unknown
    """
    if credentials is None:
        raise AuthError("Not authenticated")

    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise AuthError("User not found")
    return user


def get_analytics_client_dep() -> AnalyticsClient:
    """Return the shared analytics client."""
    return get_analytics_client()


def get_photo_upload_service_dep() -> PhotoUploadService:
    """Return the photo upload service."""
    return get_photo_upload_service()


CurrentUserDep = Annotated[User, Depends(get_current_user)]
AnalyticsDep = Annotated[AnalyticsClient, Depends(get_analytics_client_dep)]
UploadServiceDep = Annotated[PhotoUploadService, Depends(get_photo_upload_service_dep)]


def get_ranking_service(
    db: SessionDep,
    analytics: AnalyticsDep,
    background_tasks: BackgroundTasks,
) -> RankingService:
    """Return a ranking service whose events are sent after the response."""

    def emit(event: EngagementEvent) -> None:
        background_tasks.add_task(analytics.track, event)

    return RankingService(db, emit=emit)


RankingServiceDep = Annotated[RankingService, Depends(get_ranking_service)]
