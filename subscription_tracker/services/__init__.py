"""Services package."""

from subscription_tracker.services.image import (
    ALLOWED_ICON_TYPES,
    CloudinaryUploadService,
    ImageServiceError,
    ImageUploadError,
    InvalidImageError,
    UploadSinkInterface,
)
from subscription_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSubscriptionStorage,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
)

__all__ = [
    # Image services
    "ALLOWED_ICON_TYPES",
    "CloudinaryUploadService",
    "ImageServiceError",
    "ImageUploadError",
    "InvalidImageError",
    "UploadSinkInterface",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsSubscriptionStorage",
    "InMemoryAuditStorage",
    "InMemoryProfileStorage",
    "InMemorySubscriptionStorage",
    "NotFoundError",
    "ProfileStorageInterface",
    "StorageError",
    "SubscriptionStorageInterface",
]
