"""Tests for the in-memory storage backend and the audit logger on top of it."""

import asyncio
from datetime import date
from uuid import uuid4

import pytest

from subscription_tracker.audit import AuditLogger, create_correlation_id
from subscription_tracker.models import AuditEventType, AuditSeverity, Profile
from subscription_tracker.services.storage import (
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
)


class TestSubscriptionStorage:

    def test_create_and_get(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        sub = make_subscription()

        asyncio.run(storage.create_subscription(sub))

        assert asyncio.run(storage.get_subscription(sub.id)) == sub
        assert asyncio.run(storage.get_subscription(uuid4())) is None

    def test_create_twice_is_duplicate(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        sub = make_subscription()
        asyncio.run(storage.create_subscription(sub))

        with pytest.raises(DuplicateError):
            asyncio.run(storage.create_subscription(sub))

    def test_update_missing_raises(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_subscription(make_subscription()))

    def test_update_refreshes_timestamp(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        sub = asyncio.run(storage.create_subscription(make_subscription()))

        updated = asyncio.run(storage.update_subscription(sub.model_copy(update={"name": "Hulu"})))

        assert updated.name == "Hulu"
        assert updated.updated_at >= sub.updated_at

    def test_delete(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        sub = asyncio.run(storage.create_subscription(make_subscription()))

        assert asyncio.run(storage.delete_subscription(sub.id)) is True
        assert asyncio.run(storage.delete_subscription(sub.id)) is False

    def test_list_filters_and_sorts(self, make_subscription):
        storage = InMemorySubscriptionStorage()
        for sub in [
            make_subscription(name="Later", next_payment=date(2024, 5, 1)),
            make_subscription(name="Sooner", next_payment=date(2024, 3, 2)),
            make_subscription(name="Paused", is_active=False),
            make_subscription(name="Theirs", user_id="u2"),
        ]:
            asyncio.run(storage.create_subscription(sub))

        active = asyncio.run(storage.list_subscriptions("u1"))
        everything = asyncio.run(storage.list_subscriptions("u1", active_only=False))

        assert [s.name for s in active] == ["Sooner", "Later"]
        assert len(everything) == 3


class TestProfileStorage:

    def test_save_is_upsert(self):
        storage = InMemoryProfileStorage()

        asyncio.run(storage.save_profile(Profile(user_id="u1", full_name="Ana")))
        asyncio.run(storage.save_profile(Profile(user_id="u1", full_name="Ana Lima")))

        assert asyncio.run(storage.get_profile("u1")).full_name == "Ana Lima"
        assert asyncio.run(storage.get_profile("u2")) is None


class TestAuditLogger:
    """Audit events end up in storage with the right type and correlation."""

    def test_events_are_persisted(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        correlation_id = create_correlation_id()
        subscription_id = uuid4()

        asyncio.run(audit.log_subscription_created(subscription_id, "Netflix", "u1", correlation_id))
        asyncio.run(audit.log_subscription_deleted(subscription_id, correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [
            AuditEventType.SUBSCRIPTION_CREATED,
            AuditEventType.SUBSCRIPTION_DELETED,
        ]
        by_entity = asyncio.run(storage.get_events_by_entity("subscription", subscription_id))
        assert len(by_entity) == 2

    def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)

        for i in range(3):
            asyncio.run(audit.log_report_generated("u1", i, create_correlation_id()))

        recent = asyncio.run(storage.get_recent_events(limit=2))
        assert len(recent) == 2
        assert recent[0].timestamp >= recent[1].timestamp

    def test_error_severity(self):
        storage = InMemoryAuditStorage()
        asyncio.run(AuditLogger(storage).log_error("boom", "it broke"))
        assert storage.events[0].severity == AuditSeverity.ERROR

    def test_without_storage(self):
        assert asyncio.run(AuditLogger().log_error("boom", "it broke")) is True

    def test_storage_failure_is_not_raised(self):
        class FailingStorage(InMemoryAuditStorage):
            async def append_event(self, event):
                raise RuntimeError("sheet unavailable")

        result = asyncio.run(AuditLogger(FailingStorage()).log_error("boom", "it broke"))
        assert result is False
