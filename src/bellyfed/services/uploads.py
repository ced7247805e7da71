"""Pre-signed photo upload slots for rankings.

The service never proxies photo bytes. It asks the storage gateway for a
time-limited PUT URL and tells the client where the photo will be served
from. Ranking rows are untouched; the client later includes the public URL
in ``photoUrls``.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from dataclasses import dataclass

import httpx

from bellyfed.core.errors import UploadError, ValidationError
from bellyfed.core.settings import settings

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class UploadSlot:
    """Where to upload a photo and where it will be served from."""

    upload_url: str
    photo_url: str
    expires_in: int


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for the storage gateway."""

    storage_url: str | None
    public_base_url: str
    url_ttl_seconds: int
    timeout_seconds: float
    allowed_content_types: tuple[str, ...]


def load_upload_config() -> UploadConfig:
    """Build configuration object from global settings."""
    return UploadConfig(
        storage_url=settings.photo_storage_url,
        public_base_url=settings.photo_public_base_url,
        url_ttl_seconds=settings.photo_upload_url_ttl_seconds,
        timeout_seconds=float(settings.photo_storage_timeout_seconds),
        allowed_content_types=tuple(settings.photo_allowed_content_types),
    )


def _extension_for(content_type: str) -> str:
    ext = _EXTENSIONS.get(content_type)
    if ext is None:
        guessed = mimetypes.guess_extension(content_type) or ""
        ext = guessed.lstrip(".") or "bin"
    return ext


class PhotoUploadService:
    """Issues upload slots through the object storage gateway."""

    def __init__(
        self,
        config: UploadConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_upload_config()
        self._transport = transport

    def build_object_key(self, user_id: str, content_type: str) -> str:
        return f"rankings/{user_id}/{uuid.uuid4().hex}.{_extension_for(content_type)}"

    async def request_upload_slot(self, user_id: str, content_type: str) -> UploadSlot:
        """Return a pre-signed upload URL and the photo's final public URL.

        Raises:
            ValidationError: If the content type is not an allowed image type.
            UploadError: If storage is unconfigured or the gateway fails.
        """
        content_type = (content_type or "").strip().lower()
        if content_type not in self.config.allowed_content_types:
            allowed = ", ".join(self.config.allowed_content_types)
            raise ValidationError(
                f"Content type {content_type or '(empty)'} is not allowed",
                details=f"Allowed types: {allowed}",
            )

        if not self.config.storage_url:
            raise UploadError("Photo storage is not configured")

        key = self.build_object_key(user_id, content_type)
        payload = {
            "key": key,
            "contentType": content_type,
            "expiresIn": self.config.url_ttl_seconds,
            "method": "PUT",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.config.storage_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post("/presign", json=payload)
                response.raise_for_status()
                upload_url = response.json()["uploadUrl"]
        except httpx.HTTPError as exc:
            logger.error("Storage gateway failed to presign %s: %s", key, exc)
            raise UploadError("Could not obtain an upload URL") from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Storage gateway returned a malformed presign reply for %s", key)
            raise UploadError("Could not obtain an upload URL") from exc

        if not isinstance(upload_url, str) or not upload_url:
            raise UploadError("Could not obtain an upload URL")

        return UploadSlot(
            upload_url=upload_url,
            photo_url=f"{self.config.public_base_url.rstrip('/')}/{key}",
            expires_in=self.config.url_ttl_seconds,
        )


def get_photo_upload_service() -> PhotoUploadService:
    """Return a photo upload service bound to current settings."""
    return PhotoUploadService()
