"""Tests for the Cloudinary upload sink (the SDK call is replaced)."""

import asyncio

import cloudinary.uploader
import pytest
from tenacity import wait_none

from subscription_tracker.config import AppSettings, CloudinarySettings
from subscription_tracker.cropper import CropResult
from subscription_tracker.services.image import (
    CloudinaryUploadService,
    ImageUploadError,
    InvalidImageError,
)


@pytest.fixture
def service(monkeypatch):
    monkeypatch.setattr(CloudinaryUploadService._upload.retry, "wait", wait_none())
    return CloudinaryUploadService(
        settings=CloudinarySettings(cloud_name="demo", api_key="key", api_secret="secret"),
        app_settings=AppSettings(max_upload_size_mb=1),
    )


@pytest.fixture
def uploads(monkeypatch):
    calls = []

    def fake_upload(data, **options):
        calls.append((data, options))
        return {"secure_url": f"https://res.cloudinary.com/demo/{options['public_id']}"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return calls


class TestPublicIds:

    def test_avatar_id_is_stable(self):
        assert CloudinaryUploadService.avatar_public_id("u1") == "user-avatars/u1/avatar"

    def test_icon_id_uses_timestamp(self):
        assert (
            CloudinaryUploadService.icon_public_id("u1", timestamp_ms=1700000000000)
            == "subscription-icons/u1/1700000000000"
        )


class TestUploads:

    def test_avatar_upload_overwrites(self, service, uploads):
        crop = CropResult(data=b"\xff\xd8jpeg", width=250, height=250)

        url = asyncio.run(service.upload_avatar(crop, "u1"))

        assert url == "https://res.cloudinary.com/demo/user-avatars/u1/avatar"
        data, options = uploads[0]
        assert data == b"\xff\xd8jpeg"
        assert options["overwrite"] is True
        assert options["format"] == "jpg"
        assert options["folder"] == "subscription_tracker"

    def test_icon_upload(self, service, uploads):
        url = asyncio.run(service.upload_icon(b"png-bytes", "logo.png", "image/png", "u1"))

        assert url.startswith("https://res.cloudinary.com/demo/subscription-icons/u1/")
        assert uploads[0][1]["format"] == "png"

    @pytest.mark.parametrize("data,mime_type", [
        (b"", "image/png"),
        (b"gif", "image/gif"),
        (b"x" * (2 * 1024 * 1024), "image/png"),
    ])
    def test_icon_validation(self, service, uploads, data, mime_type):
        with pytest.raises(InvalidImageError):
            asyncio.run(service.upload_icon(data, "icon", mime_type, "u1"))
        assert uploads == []

    def test_failures_are_retried_then_raised(self, service, monkeypatch):
        attempts = []

        def failing_upload(data, **options):
            attempts.append(1)
            raise RuntimeError("network down")

        monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)
        crop = CropResult(data=b"jpeg", width=250, height=250)

        with pytest.raises(ImageUploadError):
            asyncio.run(service.upload_avatar(crop, "u1"))
        assert len(attempts) == 3

    def test_missing_url_is_an_error(self, service, monkeypatch):
        monkeypatch.setattr(cloudinary.uploader, "upload", lambda data, **options: {})
        crop = CropResult(data=b"jpeg", width=250, height=250)

        with pytest.raises(ImageUploadError):
            asyncio.run(service.upload_avatar(crop, "u1"))
