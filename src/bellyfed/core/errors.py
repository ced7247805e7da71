"""Error taxonomy shared by the service and the client library.

Every error carries the HTTP status it maps to, a client-safe message and
optional details. The API layer renders them as ``{"error", "details"}``.
"""

from __future__ import annotations

from fastapi import status


class BellyfedError(Exception):
    """Base class for all expected failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, str]:
        """Return the JSON error envelope for this error."""
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BellyfedError):
    """Malformed or contradictory input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(BellyfedError):
    """Missing or invalid session."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(BellyfedError):
    """Caller tried to act on a resource owned by another user."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BellyfedError):
    """Requested ranking or dish does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BellyfedError):
    """A ranking already exists for this user and dish."""

    status_code = status.HTTP_409_CONFLICT


class RateLimitError(BellyfedError):
    """Caller exceeded a documented rate limit."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class UploadError(BellyfedError):
    """Object storage could not issue an upload slot."""

    status_code = status.HTTP_502_BAD_GATEWAY


_ERRORS_BY_STATUS: dict[int, type[BellyfedError]] = {
    cls.status_code: cls
    for cls in (
        ValidationError,
        AuthError,
        PermissionDeniedError,
        NotFoundError,
        ConflictError,
        RateLimitError,
        UploadError,
    )
}


def error_for_status(status_code: int, message: str, details: str | None = None) -> BellyfedError:
    """Rebuild a typed error from an HTTP status and envelope."""
    error_cls = _ERRORS_BY_STATUS.get(status_code, BellyfedError)
    error = error_cls(message, details)
    if error_cls is BellyfedError:
        error.status_code = status_code
    return error
