"""
Abstract Storage Interface

DESIGN DECISION: Flows only talk to these interfaces.
This allows us to:
1. Use Google Sheets in production
2. Use in-memory storage for tests and unconfigured installs
3. Swap in a real database later without touching business logic

Just the operations the subscription tracker needs; not an ORM.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union
from uuid import UUID

from subscription_tracker.models import AuditEvent, Profile, Subscription


class SubscriptionStorageInterface(ABC):
    """
    Abstract interface for subscription records.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def create_subscription(self, subscription: Subscription) -> Subscription:
        """
        Store a new subscription.

        Raises:
            DuplicateError: If a subscription with this ID already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_subscription(self, subscription_id: UUID) -> Optional[Subscription]:
        """Return the subscription, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def update_subscription(self, subscription: Subscription) -> Subscription:
        """
        Replace an existing subscription and bump its ``updated_at``.

        Raises:
            NotFoundError: If the subscription doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_subscription(self, subscription_id: UUID) -> bool:
        """
        Delete a subscription by ID.

        Returns:
            True if a subscription was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def list_subscriptions(
        self,
        user_id: str,
        active_only: bool = True,
    ) -> list[Subscription]:
        """
        List a user's subscriptions, soonest renewal first.

        Args:
            user_id: Owner
            active_only: Skip subscriptions with ``is_active`` False
        """
        pass


class ProfileStorageInterface(ABC):
    """Abstract interface for user profiles (one per user)."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        pass

    @abstractmethod
    async def save_profile(self, profile: Profile) -> Profile:
        """Insert or replace the profile for ``profile.user_id``."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one avatar crop and upload).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: Union[str, UUID],
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'subscription', 'avatar')
            entity_id: The entity's ID (subscription UUID or user id)

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
