# mypy: ignore-errors
"""Tests for pre-signed photo upload slots."""

import json

import httpx
import pytest

from bellyfed.core.errors import UploadError, ValidationError
from bellyfed.services.uploads import PhotoUploadService, UploadConfig


def _config(storage_url="https://storage.internal") -> UploadConfig:
    return UploadConfig(
        storage_url=storage_url,
        public_base_url="https://photos.bellyfed.com/",
        url_ttl_seconds=300,
        timeout_seconds=1.0,
        allowed_content_types=("image/jpeg", "image/png"),
    )


@pytest.mark.asyncio
async def test_request_upload_slot() -> None:
    """The gateway is asked to presign a PUT and the public URL mirrors the key."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"uploadUrl": "https://storage.internal/put?sig=abc"})

    service = PhotoUploadService(_config(), transport=httpx.MockTransport(handler))
    slot = await service.request_upload_slot("user-alice", " Image/PNG ")

    assert seen["url"] == "https://storage.internal/presign"
    assert seen["body"]["contentType"] == "image/png"
    assert seen["body"]["method"] == "PUT"
    assert seen["body"]["expiresIn"] == 300
    key = seen["body"]["key"]
    assert key.startswith("rankings/user-alice/")
    assert key.endswith(".png")
    assert slot.upload_url == "https://storage.internal/put?sig=abc"
    assert slot.photo_url == f"https://photos.bellyfed.com/{key}"
    assert slot.expires_in == 300


@pytest.mark.asyncio
async def test_disallowed_content_type() -> None:
    service = PhotoUploadService(_config())

    with pytest.raises(ValidationError) as exc_info:
        await service.request_upload_slot("user-alice", "application/pdf")

    assert "image/jpeg" in exc_info.value.details


@pytest.mark.asyncio
async def test_unconfigured_storage() -> None:
    service = PhotoUploadService(_config(storage_url=None))

    with pytest.raises(UploadError, match="not configured"):
        await service.request_upload_slot("user-alice", "image/jpeg")


@pytest.mark.asyncio
async def test_gateway_error_becomes_upload_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    service = PhotoUploadService(_config(), transport=transport)

    with pytest.raises(UploadError, match="Could not obtain"):
        await service.request_upload_slot("user-alice", "image/jpeg")


@pytest.mark.asyncio
async def test_malformed_gateway_reply() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"url": "nope"}))
    service = PhotoUploadService(_config(), transport=transport)

    with pytest.raises(UploadError):
        await service.request_upload_slot("user-alice", "image/jpeg")


@pytest.mark.asyncio
async def test_gateway_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    service = PhotoUploadService(_config(), transport=httpx.MockTransport(handler))

    with pytest.raises(UploadError):
        await service.request_upload_slot("user-alice", "image/jpeg")


class _AsyncOnlyTransport(httpx.AsyncBaseTransport):
    """Answers presign requests and has no synchronous entry point."""

    def __init__(self) -> None:
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(200, json={"uploadUrl": "https://storage.internal/put?sig=async"})


@pytest.mark.asyncio
async def test_presign_runs_on_async_client() -> None:
    """The presign call is made through an async transport."""
    transport = _AsyncOnlyTransport()
    service = PhotoUploadService(_config(), transport=transport)

    slot = await service.request_upload_slot("user-alice", "image/jpeg")

    assert transport.calls == 1
    assert slot.upload_url == "https://storage.internal/put?sig=async"
