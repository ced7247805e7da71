"""Photo upload endpoints for the Bellyfed API."""

from fastapi import APIRouter

from bellyfed.schemas.upload import PhotoUploadRequest, PhotoUploadResponse

from ..dependencies import CurrentUserDep, UploadServiceDep

router = APIRouter(prefix="/upload", tags=["uploads"])


@router.post("/ranking-photo", response_model=PhotoUploadResponse)
async def request_ranking_photo_upload(
    payload: PhotoUploadRequest,
    current_user: CurrentUserDep,
    upload_service: UploadServiceDep,
) -> PhotoUploadResponse:
    """Issue a pre-signed URL for uploading a ranking photo.

    The client PUTs the bytes to ``uploadUrl`` and then sends ``photoUrl``
    in a ranking's ``photoUrls``.
    """
    slot = await upload_service.request_upload_slot(current_user.user_id, payload.content_type)
    return PhotoUploadResponse(
        upload_url=slot.upload_url,
        photo_url=slot.photo_url,
        expires_in=slot.expires_in,
    )
