"""
Tests for Subscription Tracker

Test strategy:
1. Unit tests for individual components (models, validators, cropper math)
2. Integration tests for flows (in-memory storage, fake upload sink)
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from subscription_tracker.models import (
    BillingCycle,
    Profile,
    Subscription,
    SubscriptionCategory,
    SubscriptionDraft,
    SubscriptionReport,
    UpcomingPayment,
    ValidationIssue,
    ValidationResult,
)
from subscription_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestSubscriptionModels:
    """Tests for subscription-related Pydantic models."""

    def test_subscription_creation(self):
        """Test Subscription model creation with defaults."""
        sub = Subscription(
            user_id="ana@example.com",
            name="Netflix",
            cost=Decimal("15.99"),
            next_payment_date=date(2024, 3, 1),
        )
        assert sub.name == "Netflix"
        assert sub.currency == "USD"
        assert sub.billing_cycle == BillingCycle.MONTHLY
        assert sub.category == SubscriptionCategory.OTHER
        assert sub.is_active is True

    def test_subscription_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        sub = Subscription(
            user_id="u1",
            name="  Spotify  ",
            cost=Decimal("9.99"),
            next_payment_date=date(2024, 3, 1),
        )
        assert sub.name == "Spotify"

    def test_subscription_normalizes_currency(self):
        sub = Subscription(
            user_id="u1",
            name="Spotify",
            cost=Decimal("9.99"),
            currency="eur",
            next_payment_date=date(2024, 3, 1),
        )
        assert sub.currency == "EUR"

    def test_subscription_rejects_negative_cost(self):
        """Test that negative costs are rejected."""
        with pytest.raises(ValidationError):
            Subscription(
                user_id="u1",
                name="Spotify",
                cost=Decimal("-1.00"),
                next_payment_date=date(2024, 3, 1),
            )

    def test_subscription_requires_name(self):
        with pytest.raises(ValidationError):
            Subscription(
                user_id="u1",
                name="",
                cost=Decimal("1.00"),
                next_payment_date=date(2024, 3, 1),
            )

    def test_draft_allows_missing_fields(self):
        """Drafts hold incomplete form data for the validator."""
        draft = SubscriptionDraft()
        assert draft.name is None
        assert draft.cost is None
        assert draft.currency == "USD"

    def test_billing_cycle_label(self):
        assert BillingCycle.YEARLY.label == "Yearly"


class TestProfileModel:
    """Tests for the Profile model."""

    def test_display_name_prefers_full_name(self):
        profile = Profile(user_id="u1", full_name="Ana Lima", email="ana@example.com")
        assert profile.display_name == "Ana Lima"
        assert profile.initial == "A"

    def test_display_name_falls_back_to_email(self):
        profile = Profile(user_id="u1", email="zoe@example.com")
        assert profile.display_name == "zoe@example.com"
        assert profile.initial == "Z"

    def test_initial_without_name_or_email(self):
        profile = Profile(user_id="u1")
        assert profile.display_name == ""
        assert profile.initial == "?"


class TestDashboardModels:
    """Tests for dashboard and report models."""

    def _subscription(self) -> Subscription:
        return Subscription(
            user_id="u1",
            name="Netflix",
            cost=Decimal("10.00"),
            next_payment_date=date(2024, 3, 1),
        )

    @pytest.mark.parametrize("days,label", [
        (-2, "Overdue by 2 days"),
        (-1, "Overdue by 1 day"),
        (0, "Today"),
        (1, "Tomorrow"),
        (12, "12 days"),
    ])
    def test_upcoming_payment_label(self, days, label):
        payment = UpcomingPayment(subscription=self._subscription(), days_until=days)
        assert payment.label == label

    def test_report_filenames(self):
        report = SubscriptionReport(
            generated_at=datetime(2024, 3, 1, 12, 0),
            monthly_total=Decimal("0"),
            yearly_total=Decimal("0"),
        )
        assert report.filename == "subscriptions_report_2024-03-01.pdf"
        assert report.csv_filename == "subscriptions_report_2024-03-01.csv"

    def test_report_csv_has_header_and_rows(self):
        report = SubscriptionReport(
            monthly_total=Decimal("10.00"),
            yearly_total=Decimal("120.00"),
            rows=[["Netflix", "streaming", "monthly", "$10.00", "2024-03-01"]],
        )
        lines = report.to_csv().splitlines()
        assert lines[0] == "Name,Category,Billing,Cost,Next Payment"
        assert lines[1] == "Netflix,streaming,monthly,$10.00,2024-03-01"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.AVATAR_UPLOADED,
            description="Avatar uploaded",
        )
        assert event.event_type == AuditEventType.AVATAR_UPLOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            description="Subscription added",
            details={"name": "Netflix"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "subscription_created"
        assert log_dict["details"]["name"] == "Netflix"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            description="Profile updated",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "profile_updated"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_subscription_created(self):
        """Test AuditEventBuilder.subscription_created."""
        correlation_id = uuid4()
        subscription_id = uuid4()

        event = AuditEventBuilder.subscription_created(
            subscription_id=subscription_id,
            name="Netflix",
            user_id="u1",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.SUBSCRIPTION_CREATED
        assert event.entity_id == str(subscription_id)
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_external_service_error(self):
        event = AuditEventBuilder.external_service_error(
            service="cloudinary",
            error_message="timeout",
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.EXTERNAL_SERVICE_ERROR
        assert event.severity == AuditSeverity.ERROR


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="cost",
                    issue_type="missing",
                    message="Cost is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert len(result.issues_for("cost")) == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="next_payment_date",
                    issue_type="past_date",
                    message="Date in past",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestSubscriptionCategories:
    """Tests for subscription category enum."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        expected = [
            "streaming", "software", "utilities", "fitness", "news", "music",
            "gaming", "productivity", "communication", "storage", "other",
        ]
        for cat in expected:
            assert SubscriptionCategory(cat) is not None

    def test_category_values(self):
        """Test category string values."""
        assert SubscriptionCategory.STREAMING.value == "streaming"
        assert SubscriptionCategory.OTHER.value == "other"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
