"""Builds the exportable subscriptions report."""

from datetime import datetime
from typing import Optional

from subscription_tracker.catalog import currency_symbol
from subscription_tracker.dashboard.calculator import monthly_equivalent, to_cents
from subscription_tracker.models import Profile, Subscription, SubscriptionReport


def build_report(
    subscriptions: list[Subscription],
    profile: Optional[Profile],
    now: Optional[datetime] = None,
) -> SubscriptionReport:
    """
    One row per subscription, in the order given.

    The header totals are the normalized monthly and yearly equivalents.
    """
    currency = profile.default_currency if profile else None
    symbol = currency_symbol(currency)
    monthly = monthly_equivalent(subscriptions)

    rows = [
        [
            s.name,
            s.category.value,
            s.billing_cycle.value,
            f"{symbol}{s.cost:.2f}",
            s.next_payment_date.isoformat(),
        ]
        for s in subscriptions
    ]

    return SubscriptionReport(
        user_label=profile.display_name if profile else "",
        generated_at=now or datetime.utcnow(),
        currency_symbol=symbol,
        monthly_total=to_cents(monthly),
        yearly_total=to_cents(monthly * 12),
        rows=rows,
    )
