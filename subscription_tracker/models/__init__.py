"""
Data Models Package

This package contains all Pydantic models used in the Subscription Tracker.
All data flowing through the system must conform to these schemas.
"""

from subscription_tracker.models.subscription import (
    BillingCycle,
    IconKind,
    Profile,
    Subscription,
    SubscriptionCategory,
    SubscriptionDraft,
    ValidationIssue,
    ValidationResult,
)
from subscription_tracker.models.dashboard import (
    CategorySpend,
    DashboardSummary,
    SubscriptionReport,
    UpcomingPayment,
)
from subscription_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Subscription models
    "BillingCycle",
    "IconKind",
    "Profile",
    "Subscription",
    "SubscriptionCategory",
    "SubscriptionDraft",
    "ValidationIssue",
    "ValidationResult",
    # Dashboard models
    "CategorySpend",
    "DashboardSummary",
    "SubscriptionReport",
    "UpcomingPayment",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
