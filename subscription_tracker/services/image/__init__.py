"""Image upload services package."""

from subscription_tracker.services.image.cloudinary_service import CloudinaryUploadService
from subscription_tracker.services.image.interface import (
    ALLOWED_ICON_TYPES,
    ImageServiceError,
    ImageUploadError,
    InvalidImageError,
    UploadSinkInterface,
)

__all__ = [
    "ALLOWED_ICON_TYPES",
    "CloudinaryUploadService",
    "ImageServiceError",
    "ImageUploadError",
    "InvalidImageError",
    "UploadSinkInterface",
]
