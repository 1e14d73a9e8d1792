"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory backend serves tests
and installs without Sheets credentials.
"""

from subscription_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
)
from subscription_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSubscriptionStorage,
)
from subscription_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySubscriptionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ProfileStorageInterface",
    "SubscriptionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsSubscriptionStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryProfileStorage",
    "InMemorySubscriptionStorage",
]
