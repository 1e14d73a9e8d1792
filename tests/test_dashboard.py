"""Tests for dashboard figures and the exported report."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from subscription_tracker.dashboard import (
    build_report,
    build_summary,
    category_breakdown,
    monthly_amount,
    upcoming_payments,
)
from subscription_tracker.models import BillingCycle, Profile, SubscriptionCategory

TODAY = date(2024, 3, 1)


class TestNormalization:

    @pytest.mark.parametrize("cycle,cost,expected", [
        (BillingCycle.MONTHLY, "10.00", Decimal("10.00")),
        (BillingCycle.YEARLY, "120.00", Decimal("10.00")),
        (BillingCycle.WEEKLY, "3.00", Decimal("13.00")),
        (BillingCycle.DAILY, "1.20", Decimal("36.50")),
    ])
    def test_monthly_amount(self, make_subscription, cycle, cost, expected):
        sub = make_subscription(cost=cost, cycle=cycle)
        assert monthly_amount(sub) == expected


class TestSummary:
    """Tests for build_summary."""

    def test_monthly_and_yearly_totals(self, make_subscription):
        subs = [
            make_subscription(name="Netflix", cost="10.00", cycle=BillingCycle.MONTHLY),
            make_subscription(name="Domain", cost="120.00", cycle=BillingCycle.YEARLY),
        ]

        summary = build_summary(subs, "USD", today=TODAY)

        assert summary.monthly_equivalent == Decimal("20.00")
        assert summary.yearly_equivalent == Decimal("240.00")
        assert summary.monthly_total == Decimal("10.00")
        assert summary.yearly_total == Decimal("120.00")
        assert summary.active_count == 2

    def test_inactive_subscriptions_are_ignored(self, make_subscription):
        subs = [
            make_subscription(cost="10.00"),
            make_subscription(name="Old", cost="99.00", is_active=False),
        ]
        summary = build_summary(subs, "USD", today=TODAY)
        assert summary.active_count == 1
        assert summary.monthly_equivalent == Decimal("10.00")

    def test_empty(self):
        summary = build_summary([], "EUR", today=TODAY)
        assert summary.active_count == 0
        assert summary.monthly_equivalent == Decimal("0.00")
        assert summary.upcoming == []
        assert summary.categories == []
        assert summary.currency_symbol == "€"

    def test_amount_formatting(self, make_subscription):
        summary = build_summary(
            [make_subscription(cost="1234.50")],
            "GBP",
            today=TODAY,
        )
        assert summary.format_amount(summary.monthly_equivalent) == "£1,234.50"

    def test_unknown_currency_uses_dollar(self):
        assert build_summary([], "XYZ", today=TODAY).currency_symbol == "$"


class TestUpcoming:
    """Renewals inside the dashboard window."""

    def test_window_excludes_later_payments(self, make_subscription):
        subs = [
            make_subscription(name="Soon", next_payment=date(2024, 3, 5)),
            make_subscription(name="Edge", next_payment=date(2024, 3, 31)),
            make_subscription(name="Later", next_payment=date(2024, 4, 1)),
        ]

        upcoming = upcoming_payments(subs, TODAY, window_days=30)

        assert [p.subscription.name for p in upcoming] == ["Soon", "Edge"]
        assert [p.days_until for p in upcoming] == [4, 30]

    def test_sorted_soonest_first_with_overdue(self, make_subscription):
        subs = [
            make_subscription(name="B", next_payment=date(2024, 3, 10)),
            make_subscription(name="Overdue", next_payment=date(2024, 2, 27)),
            make_subscription(name="A", next_payment=date(2024, 3, 2)),
        ]

        upcoming = upcoming_payments(subs, TODAY)

        assert [p.subscription.name for p in upcoming] == ["Overdue", "A", "B"]
        assert upcoming[0].days_until == -3
        assert upcoming[0].label == "Overdue by 3 days"


class TestCategories:

    def test_breakdown_sorted_by_amount(self, make_subscription):
        subs = [
            make_subscription(name="Netflix", cost="15.00", category=SubscriptionCategory.STREAMING),
            make_subscription(name="Hulu", cost="5.00", category=SubscriptionCategory.STREAMING),
            make_subscription(name="Gym", cost="30.00", category=SubscriptionCategory.FITNESS),
            make_subscription(
                name="Paper",
                cost="120.00",
                cycle=BillingCycle.YEARLY,
                category=SubscriptionCategory.NEWS,
            ),
        ]

        breakdown = category_breakdown(subs)

        assert [c.category for c in breakdown] == [
            SubscriptionCategory.FITNESS,
            SubscriptionCategory.STREAMING,
            SubscriptionCategory.NEWS,
        ]
        assert breakdown[0].monthly_amount == Decimal("30.00")
        assert breakdown[1].monthly_amount == Decimal("20.00")
        assert breakdown[2].monthly_amount == Decimal("10.00")
        assert breakdown[0].percentage == pytest.approx(50.0)
        assert sum(c.percentage for c in breakdown) == pytest.approx(100.0)
        assert breakdown[0].glyph == "🏋️"


class TestReport:
    """Tests for build_report."""

    def test_rows_and_totals(self, make_subscription):
        subs = [
            make_subscription(name="Netflix", cost="10.00", next_payment=date(2024, 3, 10)),
            make_subscription(
                name="Domain",
                cost="120.00",
                cycle=BillingCycle.YEARLY,
                category=SubscriptionCategory.SOFTWARE,
                next_payment=date(2024, 6, 1),
            ),
        ]
        profile = Profile(user_id="u1", full_name="Ana Lima", default_currency="EUR")

        report = build_report(subs, profile, now=datetime(2024, 3, 1, 9, 30))

        assert report.user_label == "Ana Lima"
        assert report.currency_symbol == "€"
        assert report.monthly_total == Decimal("20.00")
        assert report.yearly_total == Decimal("240.00")
        assert report.rows == [
            ["Netflix", "streaming", "monthly", "€10.00", "2024-03-10"],
            ["Domain", "software", "yearly", "€120.00", "2024-06-01"],
        ]
        assert report.filename == "subscriptions_report_2024-03-01.pdf"

    def test_without_profile(self, make_subscription):
        report = build_report([make_subscription()], None)
        assert report.user_label == ""
        assert report.currency_symbol == "$"
