"""
In-Memory Storage Implementation

Used by tests and when Google Sheets is not configured. Data lives
for the lifetime of the process only.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from subscription_tracker.models import AuditEvent, Profile, Subscription
from subscription_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    ProfileStorageInterface,
    SubscriptionStorageInterface,
)


class InMemorySubscriptionStorage(SubscriptionStorageInterface):

    def __init__(self):
        self._subscriptions: dict[UUID, Subscription] = {}

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        if subscription.id in self._subscriptions:
            raise DuplicateError(f"Subscription already exists: {subscription.id}")
        self._subscriptions[subscription.id] = subscription
        return subscription

    async def get_subscription(self, subscription_id: UUID) -> Optional[Subscription]:
        return self._subscriptions.get(subscription_id)

    async def update_subscription(self, subscription: Subscription) -> Subscription:
        if subscription.id not in self._subscriptions:
            raise NotFoundError(f"Subscription not found: {subscription.id}")
        updated = subscription.model_copy(update={"updated_at": datetime.utcnow()})
        self._subscriptions[subscription.id] = updated
        return updated

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None

    async def list_subscriptions(
        self,
        user_id: str,
        active_only: bool = True,
    ) -> list[Subscription]:
        subscriptions = [
            s for s in self._subscriptions.values()
            if s.user_id == user_id and (s.is_active or not active_only)
        ]
        subscriptions.sort(key=lambda s: s.next_payment_date)
        return subscriptions


class InMemoryProfileStorage(ProfileStorageInterface):

    def __init__(self):
        self._profiles: dict[str, Profile] = {}

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get(user_id)

    async def save_profile(self, profile: Profile) -> Profile:
        saved = profile.model_copy(update={"updated_at": datetime.utcnow()})
        self._profiles[profile.user_id] = saved
        return saved


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: Union[str, UUID],
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == str(entity_id)
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
