"""Photo upload schemas."""

from pydantic import Field

from .common import CamelModel


class PhotoUploadRequest(CamelModel):
    """Request for a pre-signed ranking photo upload slot."""

    content_type: str = Field(..., description="MIME type of the photo, e.g. image/jpeg")


class PhotoUploadResponse(CamelModel):
    """Upload slot returned to the client."""

    upload_url: str = Field(..., description="Pre-signed URL to PUT the photo bytes to")
    photo_url: str = Field(..., description="Public URL of the photo once uploaded")
    expires_in: int = Field(..., description="Seconds until upload_url expires")
