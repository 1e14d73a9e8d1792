"""Dashboard figures and report export."""

from subscription_tracker.dashboard.calculator import (
    PERIODS_PER_YEAR,
    build_summary,
    category_breakdown,
    cycle_total,
    monthly_amount,
    monthly_equivalent,
    upcoming_payments,
)
from subscription_tracker.dashboard.report import build_report

__all__ = [
    "PERIODS_PER_YEAR",
    "build_report",
    "build_summary",
    "category_breakdown",
    "cycle_total",
    "monthly_amount",
    "monthly_equivalent",
    "upcoming_payments",
]
