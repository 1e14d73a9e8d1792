"""
Image Upload Service using Cloudinary

DESIGN DECISION: Cloudinary hosts avatars and custom icons because:
1. Public CDN URLs out of the box
2. Overwrite-by-public-id gives us avatar upserts for free
3. Simple API
4. Free tier sufficient for personal use

Layout under the configured root folder:
- user-avatars/{user_id}/avatar            (one per user, overwritten)
- subscription-icons/{user_id}/{timestamp}  (one per upload)

Avatar crops are already encoded by the cropper; they are uploaded
as-is with no transformations.
"""

import time
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from subscription_tracker.config import AppSettings, CloudinarySettings, get_settings
from subscription_tracker.cropper import CropResult
from subscription_tracker.services.image.interface import (
    ALLOWED_ICON_TYPES,
    ImageUploadError,
    InvalidImageError,
    UploadSinkInterface,
)


class CloudinaryUploadService(UploadSinkInterface):
    """
    Upload sink backed by Cloudinary.

    Flow:
    1. Validate the file (icons only; crops are trusted)
    2. Upload with a deterministic public id
    3. Return the secure URL or raise ImageUploadError
    """

    def __init__(
        self,
        settings: Optional[CloudinarySettings] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().cloudinary
        self._app_settings = app_settings or get_settings().app
        self._configured = False
        self._logger = structlog.get_logger()

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    @staticmethod
    def avatar_public_id(user_id: str) -> str:
        return f"user-avatars/{user_id}/avatar"

    @staticmethod
    def icon_public_id(user_id: str, timestamp_ms: Optional[int] = None) -> str:
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"subscription-icons/{user_id}/{timestamp_ms}"

    def validate_icon(self, data: bytes, mime_type: str) -> None:
        """
        Check an icon before uploading it.

        Raises:
            InvalidImageError: empty, unsupported type or over the size limit
        """
        if not data:
            raise InvalidImageError("The selected file is empty")
        if mime_type not in ALLOWED_ICON_TYPES:
            raise InvalidImageError(
                f"Unsupported icon type {mime_type}; use PNG, JPEG, WebP or SVG"
            )
        if len(data) > self._app_settings.max_upload_size_bytes:
            raise InvalidImageError(
                f"Icon is larger than {self._app_settings.max_upload_size_mb} MB"
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _upload(self, data: bytes, public_id: str, **options) -> str:
        self._configure()
        try:
            result = cloudinary.uploader.upload(
                data,
                public_id=public_id,
                folder=self._settings.root_folder,
                resource_type="image",
                **options,
            )
        except cloudinary.exceptions.Error as e:
            raise ImageUploadError(f"Cloudinary error: {e}") from e
        except Exception as e:
            raise ImageUploadError(f"Failed to upload image: {e}") from e

        url = result.get("secure_url", result.get("url", ""))
        if not url:
            raise ImageUploadError("No URL returned from Cloudinary")
        return url

    async def upload_avatar(self, crop: CropResult, user_id: str) -> str:
        """Upload an avatar crop, overwriting the user's previous avatar."""
        public_id = self.avatar_public_id(user_id)
        url = await self._upload(
            crop.data,
            public_id,
            overwrite=True,
            invalidate=True,
            format=crop.extension,
        )
        self._logger.info(
            "avatar_uploaded",
            user_id=user_id,
            public_id=public_id,
            size_bytes=crop.size_bytes,
        )
        return url

    async def upload_icon(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        user_id: str,
    ) -> str:
        """Validate and upload a custom subscription icon."""
        self.validate_icon(data, mime_type)
        public_id = self.icon_public_id(user_id)
        url = await self._upload(
            data,
            public_id,
            format=ALLOWED_ICON_TYPES[mime_type],
        )
        self._logger.info(
            "icon_uploaded",
            user_id=user_id,
            filename=filename,
            public_id=public_id,
            size_bytes=len(data),
        )
        return url
