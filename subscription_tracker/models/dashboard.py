"""
Dashboard and Report Models

Read-only views computed from stored subscriptions.
Nothing here is persisted.
"""

import csv
import io
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from subscription_tracker.models.subscription import (
    Subscription,
    SubscriptionCategory,
)


class UpcomingPayment(BaseModel):
    """A renewal falling inside the dashboard window."""

    subscription: Subscription
    days_until: int = Field(
        ...,
        description="Whole days from today; negative when past due"
    )

    @property
    def label(self) -> str:
        if self.days_until < 0:
            days = -self.days_until
            return f"Overdue by {days} day{'s' if days != 1 else ''}"
        if self.days_until == 0:
            return "Today"
        if self.days_until == 1:
            return "Tomorrow"
        return f"{self.days_until} days"


class CategorySpend(BaseModel):
    """Monthly spend for one category."""

    category: SubscriptionCategory
    monthly_amount: Decimal = Field(ge=0)
    percentage: float = Field(
        ge=0.0,
        description="Share of the monthly equivalent, 0-100"
    )
    glyph: str = ""


class DashboardSummary(BaseModel):
    """Everything the dashboard page shows."""

    generated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    currency_symbol: str = "$"
    active_count: int = Field(ge=0)

    # Raw totals per cycle
    monthly_total: Decimal = Field(
        ...,
        description="Sum of monthly-cycle costs"
    )
    yearly_total: Decimal = Field(
        ...,
        description="Sum of yearly-cycle costs"
    )

    # Every cycle normalized
    monthly_equivalent: Decimal
    yearly_equivalent: Decimal

    upcoming: list[UpcomingPayment] = Field(default_factory=list)
    categories: list[CategorySpend] = Field(default_factory=list)

    def format_amount(self, amount: Decimal) -> str:
        return f"{self.currency_symbol}{amount:,.2f}"


REPORT_HEADERS = ["Name", "Category", "Billing", "Cost", "Next Payment"]


class SubscriptionReport(BaseModel):
    """
    Data for the exported subscriptions report.

    Rendering to PDF is done by an external renderer; this model
    carries exactly what it needs and can also be written as CSV.
    """

    title: str = "Subscriptions Report"
    user_label: str = ""
    generated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    currency_symbol: str = "$"
    monthly_total: Decimal
    yearly_total: Decimal
    rows: list[list[str]] = Field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"subscriptions_report_{self.generated_at.date().isoformat()}.pdf"

    @property
    def csv_filename(self) -> str:
        return self.filename.removesuffix(".pdf") + ".csv"

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(REPORT_HEADERS)
        writer.writerows(self.rows)
        return buffer.getvalue()
