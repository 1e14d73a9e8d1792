"""
Dashboard Calculations

Pure functions over a list of subscriptions. Nothing here touches
storage, so every figure on the dashboard can be tested directly.

DESIGN DECISION: All arithmetic is Decimal and rounded to cents only
for display. Cycles are normalized to a monthly amount by annualizing
first (a year is 12 months, 52 weeks or 365 days) and dividing by 12.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from subscription_tracker.catalog import category_glyph, currency_symbol
from subscription_tracker.models import (
    BillingCycle,
    CategorySpend,
    DashboardSummary,
    Subscription,
    SubscriptionCategory,
    UpcomingPayment,
)

CENT = Decimal("0.01")

# Billing periods per year
PERIODS_PER_YEAR: dict[BillingCycle, int] = {
    BillingCycle.MONTHLY: 12,
    BillingCycle.YEARLY: 1,
    BillingCycle.WEEKLY: 52,
    BillingCycle.DAILY: 365,
}


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def monthly_amount(subscription: Subscription) -> Decimal:
    """Cost of one subscription expressed per month."""
    return subscription.cost * PERIODS_PER_YEAR[subscription.billing_cycle] / 12


def cycle_total(
    subscriptions: Iterable[Subscription],
    cycle: BillingCycle,
) -> Decimal:
    """Raw sum of costs billed on ``cycle``."""
    return sum(
        (s.cost for s in subscriptions if s.billing_cycle == cycle),
        Decimal(0),
    )


def monthly_equivalent(subscriptions: Iterable[Subscription]) -> Decimal:
    return sum((monthly_amount(s) for s in subscriptions), Decimal(0))


def upcoming_payments(
    subscriptions: Iterable[Subscription],
    today: date,
    window_days: int = 30,
) -> list[UpcomingPayment]:
    """
    Renewals due within ``window_days`` of ``today``, soonest first.

    Past-due renewals are included with a negative ``days_until``.
    """
    horizon = today + timedelta(days=window_days)
    due = [s for s in subscriptions if s.next_payment_date <= horizon]
    due.sort(key=lambda s: s.next_payment_date)
    return [
        UpcomingPayment(
            subscription=s,
            days_until=(s.next_payment_date - today).days,
        )
        for s in due
    ]


def category_breakdown(subscriptions: Iterable[Subscription]) -> list[CategorySpend]:
    """Normalized monthly spend per category, largest first."""
    totals: dict[SubscriptionCategory, Decimal] = defaultdict(lambda: Decimal(0))
    for s in subscriptions:
        totals[s.category] += monthly_amount(s)

    overall = sum(totals.values(), Decimal(0))

    breakdown = [
        CategorySpend(
            category=category,
            monthly_amount=to_cents(amount),
            percentage=float(amount / overall * 100) if overall else 0.0,
            glyph=category_glyph(category),
        )
        for category, amount in totals.items()
    ]
    breakdown.sort(key=lambda c: c.monthly_amount, reverse=True)
    return breakdown


def build_summary(
    subscriptions: list[Subscription],
    currency: Optional[str],
    today: date,
    window_days: int = 30,
    now: Optional[datetime] = None,
) -> DashboardSummary:
    """
    Compute every dashboard figure for a user's subscriptions.

    Inactive subscriptions are ignored.
    """
    active = [s for s in subscriptions if s.is_active]
    monthly_eq = monthly_equivalent(active)

    return DashboardSummary(
        generated_at=now or datetime.utcnow(),
        currency_symbol=currency_symbol(currency),
        active_count=len(active),
        monthly_total=to_cents(cycle_total(active, BillingCycle.MONTHLY)),
        yearly_total=to_cents(cycle_total(active, BillingCycle.YEARLY)),
        monthly_equivalent=to_cents(monthly_eq),
        yearly_equivalent=to_cents(monthly_eq * 12),
        upcoming=upcoming_payments(active, today, window_days),
        categories=category_breakdown(active),
    )
