"""
Integration tests for the orchestrator flows.

Storage is in memory and uploads go to a fake sink, so the full
subscription, avatar and dashboard flows run without network access.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import pytest

from subscription_tracker.audit import AuditLogger
from subscription_tracker.cropper import CircularCropEngine, ImageLoadError, NotLoadedError
from subscription_tracker.models import AuditEventType, BillingCycle, Profile, SubscriptionDraft
from subscription_tracker.orchestrator import (
    DashboardFlow,
    ProfileFlow,
    SubscriptionFlow,
    SubscriptionValidationError,
    UploadsNotConfiguredError,
    create_app_components,
)
from subscription_tracker.services.image import ImageUploadError, UploadSinkInterface
from subscription_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryProfileStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
)

TODAY = date(2024, 3, 1)


class FakeUploadSink(UploadSinkInterface):
    def __init__(self, fail=False):
        self.fail = fail
        self.avatars = []
        self.icons = []

    async def upload_avatar(self, crop, user_id):
        if self.fail:
            raise ImageUploadError("cloudinary unavailable")
        self.avatars.append((user_id, crop))
        return f"https://cdn.example.com/{user_id}/avatar.jpg"

    async def upload_icon(self, data, filename, mime_type, user_id):
        if self.fail:
            raise ImageUploadError("cloudinary unavailable")
        self.icons.append((user_id, filename, mime_type))
        return f"https://cdn.example.com/{user_id}/{filename}"


class App:
    """All three flows wired to shared in-memory storage."""

    def __init__(self, upload_sink=None):
        self.subscriptions = InMemorySubscriptionStorage()
        self.profiles = InMemoryProfileStorage()
        self.audit_storage = InMemoryAuditStorage()
        audit = AuditLogger(self.audit_storage)

        self.subscription_flow = SubscriptionFlow(
            self.subscriptions,
            self.profiles,
            upload_sink=upload_sink,
            audit_logger=audit,
        )
        self.profile_flow = ProfileFlow(
            self.profiles,
            upload_sink=upload_sink,
            audit_logger=audit,
        )
        self.dashboard_flow = DashboardFlow(
            self.subscriptions,
            self.profiles,
            audit_logger=audit,
        )

    def event_types(self):
        return [e.event_type for e in self.audit_storage.events]


def _draft(**overrides):
    values = {
        "name": "Netflix",
        "cost": Decimal("10.00"),
        "next_payment_date": date(2024, 3, 10),
    }
    values.update(overrides)
    return SubscriptionDraft(**values)


class TestSubscriptionFlow:
    """Draft -> validate -> save."""

    def test_new_draft_uses_profile_currency(self):
        app = App()
        asyncio.run(app.profile_flow.set_default_currency("u1", "eur"))

        draft = asyncio.run(app.subscription_flow.new_draft("u1"))

        assert draft.currency == "EUR"

    def test_add_valid_subscription(self):
        app = App()

        saved = asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))

        assert saved.user_id == "u1"
        assert asyncio.run(app.subscription_flow.list_subscriptions("u1")) == [saved]
        assert AuditEventType.SUBSCRIPTION_CREATED in app.event_types()

    def test_invalid_draft_is_not_stored(self):
        app = App()

        with pytest.raises(SubscriptionValidationError) as exc:
            asyncio.run(app.subscription_flow.add_subscription("u1", _draft(cost=None), today=TODAY))

        assert exc.value.result.issues_for("cost")
        assert "Cost is required" in exc.value.message
        assert asyncio.run(app.subscription_flow.list_subscriptions("u1")) == []
        assert app.event_types() == [AuditEventType.SUBSCRIPTION_VALIDATION_FAILED]

    def test_update_records_changed_fields(self):
        app = App()
        saved = asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))

        updated = asyncio.run(app.subscription_flow.update_subscription(
            saved.id,
            _draft(cost=Decimal("12.00"), billing_cycle=BillingCycle.YEARLY),
            today=TODAY,
        ))

        assert updated.cost == Decimal("12.00")
        assert updated.billing_cycle == BillingCycle.YEARLY
        event = app.audit_storage.events[-1]
        assert event.event_type == AuditEventType.SUBSCRIPTION_UPDATED
        assert event.details["changed_fields"] == ["cost", "billing_cycle"]

    def test_update_keeps_own_name(self):
        app = App()
        saved = asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))

        result, _ = asyncio.run(app.subscription_flow.validate_draft(
            _draft(), "u1", exclude_id=saved.id, today=TODAY,
        ))

        assert result.warnings == []

    def test_update_missing_subscription(self):
        app = App()
        saved = asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))
        asyncio.run(app.subscription_flow.delete_subscription(saved.id))

        with pytest.raises(NotFoundError):
            asyncio.run(app.subscription_flow.update_subscription(saved.id, _draft()))

    def test_delete(self):
        app = App()
        saved = asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))

        assert asyncio.run(app.subscription_flow.delete_subscription(saved.id)) is True
        assert asyncio.run(app.subscription_flow.delete_subscription(saved.id)) is False
        assert app.event_types().count(AuditEventType.SUBSCRIPTION_DELETED) == 1

    def test_custom_icon_upload(self):
        sink = FakeUploadSink()
        app = App(upload_sink=sink)

        url = asyncio.run(app.subscription_flow.upload_custom_icon(
            "u1", b"png", "logo.png", "image/png",
        ))
        saved = asyncio.run(app.subscription_flow.add_subscription(
            "u1", _draft(icon_url=url), today=TODAY,
        ))

        assert saved.icon_url == "https://cdn.example.com/u1/logo.png"
        assert AuditEventType.ICON_UPLOADED in app.event_types()

    def test_icon_upload_without_sink(self):
        app = App()
        with pytest.raises(UploadsNotConfiguredError):
            asyncio.run(app.subscription_flow.upload_custom_icon("u1", b"png", "a.png", "image/png"))

    def test_icon_upload_failure_is_audited(self):
        app = App(upload_sink=FakeUploadSink(fail=True))
        with pytest.raises(ImageUploadError):
            asyncio.run(app.subscription_flow.upload_custom_icon("u1", b"png", "a.png", "image/png"))
        assert app.event_types() == [AuditEventType.EXTERNAL_SERVICE_ERROR]


class TestProfileFlow:
    """Profile settings and the avatar crop -> upload -> save flow."""

    def test_first_access_creates_profile(self):
        app = App()

        profile = asyncio.run(app.profile_flow.get_profile("u1", email="ana@example.com"))
        again = asyncio.run(app.profile_flow.get_profile("u1"))

        assert profile.email == "ana@example.com"
        assert profile.default_currency == "USD"
        assert again.email == "ana@example.com"
        assert app.event_types() == [AuditEventType.PROFILE_CREATED]

    def test_update_name_notifies_listeners(self):
        app = App()
        seen = []
        app.profile_flow.events.subscribe(lambda p: seen.append(p.full_name))

        asyncio.run(app.profile_flow.update_full_name("u1", "  Ana Lima  "))
        asyncio.run(app.profile_flow.update_full_name("u1", "   "))

        assert seen == ["Ana Lima", None]

    def test_unknown_currency_rejected(self):
        app = App()
        with pytest.raises(ValueError):
            asyncio.run(app.profile_flow.set_default_currency("u1", "XYZ"))

    def test_avatar_crop_upload_and_save(self, png_bytes):
        sink = FakeUploadSink()
        app = App(upload_sink=sink)
        seen = []
        app.profile_flow.events.subscribe(lambda p: seen.append(p.avatar_url))

        engine = asyncio.run(app.profile_flow.open_cropper("u1", png_bytes(800, 400), "me.png"))
        engine.set_scale(1.5)
        engine.drag_to((150, 150), (160, 150))
        profile = asyncio.run(app.profile_flow.confirm_avatar_crop(engine, "u1"))

        assert profile.avatar_url == "https://cdn.example.com/u1/avatar.jpg"
        assert seen == [profile.avatar_url]
        user_id, crop = sink.avatars[0]
        assert (crop.width, crop.height) == (250, 250)
        assert crop.open().size == (250, 250)

        types = app.event_types()
        for expected in (
            AuditEventType.AVATAR_IMAGE_LOADED,
            AuditEventType.AVATAR_CROPPED,
            AuditEventType.AVATAR_UPLOADED,
            AuditEventType.PROFILE_UPDATED,
        ):
            assert expected in types

    def test_bad_image_is_rejected_and_audited(self):
        app = App(upload_sink=FakeUploadSink())

        with pytest.raises(ImageLoadError):
            asyncio.run(app.profile_flow.open_cropper("u1", b"not an image"))

        assert app.event_types() == [AuditEventType.AVATAR_IMAGE_REJECTED]

    def test_failed_upload_keeps_old_avatar(self, png_bytes):
        app = App(upload_sink=FakeUploadSink(fail=True))
        asyncio.run(app.profiles.save_profile(
            Profile(user_id="u1", avatar_url="https://cdn.example.com/old.jpg")
        ))
        engine = asyncio.run(app.profile_flow.open_cropper("u1", png_bytes()))

        with pytest.raises(ImageUploadError):
            asyncio.run(app.profile_flow.confirm_avatar_crop(engine, "u1"))

        profile = asyncio.run(app.profiles.get_profile("u1"))
        assert profile.avatar_url == "https://cdn.example.com/old.jpg"
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in app.event_types()

    def test_confirm_without_image(self):
        app = App(upload_sink=FakeUploadSink())

        with pytest.raises(NotLoadedError):
            asyncio.run(app.profile_flow.confirm_avatar_crop(CircularCropEngine(), "u1"))

    def test_confirm_without_sink(self, png_bytes):
        app = App()
        engine = asyncio.run(app.profile_flow.open_cropper("u1", png_bytes()))

        with pytest.raises(UploadsNotConfiguredError):
            asyncio.run(app.profile_flow.confirm_avatar_crop(engine, "u1"))


class TestDashboardFlow:

    def test_summary_and_report(self):
        app = App()
        asyncio.run(app.profile_flow.update_full_name("u1", "Ana"))
        asyncio.run(app.subscription_flow.add_subscription("u1", _draft(), today=TODAY))
        asyncio.run(app.subscription_flow.add_subscription(
            "u1",
            _draft(name="Domain", cost=Decimal("120.00"), billing_cycle=BillingCycle.YEARLY,
                   next_payment_date=date(2024, 9, 1)),
            today=TODAY,
        ))

        summary = asyncio.run(app.dashboard_flow.summary("u1", today=TODAY))
        report = asyncio.run(app.dashboard_flow.report("u1", now=datetime(2024, 3, 1)))

        assert summary.monthly_equivalent == Decimal("20.00")
        assert summary.yearly_equivalent == Decimal("240.00")
        assert [p.subscription.name for p in summary.upcoming] == ["Netflix"]
        assert report.user_label == "Ana"
        assert len(report.rows) == 2
        assert AuditEventType.REPORT_GENERATED in app.event_types()

    def test_summary_for_new_user(self):
        app = App()
        summary = asyncio.run(app.dashboard_flow.summary("nobody", today=TODAY))
        assert summary.active_count == 0


class TestAppComponents:

    def test_falls_back_to_memory(self):
        subscription_flow, profile_flow, dashboard_flow, sheets_client = (
            create_app_components(use_storage=False)
        )

        assert sheets_client is None
        saved = asyncio.run(subscription_flow.add_subscription("u1", _draft(), today=TODAY))
        assert asyncio.run(dashboard_flow.summary("u1", today=TODAY)).active_count == 1
        assert saved.name == "Netflix"
