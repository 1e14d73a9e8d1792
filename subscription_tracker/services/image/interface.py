"""
Abstract Upload Sink

Takes encoded images and returns a public URL. The avatar and icon
flows depend only on this interface.
"""

from abc import ABC, abstractmethod

from subscription_tracker.cropper import CropResult

ALLOWED_ICON_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


class UploadSinkInterface(ABC):

    @abstractmethod
    async def upload_avatar(self, crop: CropResult, user_id: str) -> str:
        """
        Store ``crop`` as the user's avatar, replacing any previous one.

        Returns:
            Public URL of the stored image

        Raises:
            ImageUploadError: If the upload fails
        """
        pass

    @abstractmethod
    async def upload_icon(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        user_id: str,
    ) -> str:
        """
        Store a custom subscription icon.

        Returns:
            Public URL of the stored image

        Raises:
            InvalidImageError: Unsupported type or too large
            ImageUploadError: If the upload fails
        """
        pass


class ImageServiceError(Exception):
    """Base exception for image service errors."""
    pass


class InvalidImageError(ImageServiceError):
    """The file was rejected before upload (type or size)."""
    pass


class ImageUploadError(ImageServiceError):
    """Failed to upload image to the hosted store."""
    pass
