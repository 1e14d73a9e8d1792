"""
Core Data Models for Subscription Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Money is always Decimal. Currency is only a label;
no conversion is ever performed.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SubscriptionCategory(str, Enum):
    """
    Supported subscription categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent grouping on the dashboard breakdown.
    """
    STREAMING = "streaming"
    SOFTWARE = "software"
    UTILITIES = "utilities"
    FITNESS = "fitness"
    NEWS = "news"
    MUSIC = "music"
    GAMING = "gaming"
    PRODUCTIVITY = "productivity"
    COMMUNICATION = "communication"
    STORAGE = "storage"
    OTHER = "other"


class BillingCycle(str, Enum):
    """How often a subscription renews."""
    MONTHLY = "monthly"
    YEARLY = "yearly"
    WEEKLY = "weekly"
    DAILY = "daily"

    @property
    def label(self) -> str:
        return self.value.title()


class IconKind(str, Enum):
    """How a subscription icon is rendered."""
    PRESET = "preset"    # Glyph from the preset catalogue
    CUSTOM = "custom"    # Uploaded image URL
    DEFAULT = "default"  # Nothing selected or unknown preset


# =============================================================================
# SUBSCRIPTION MODELS
# =============================================================================

class SubscriptionDraft(BaseModel):
    """
    Form data entered by the user, before validation.

    All fields are optional so the validator can report every
    missing field at once instead of failing on the first one.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[Decimal] = None
    currency: str = "USD"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: SubscriptionCategory = SubscriptionCategory.OTHER
    next_payment_date: Optional[date] = None
    website_url: Optional[str] = None
    icon_url: Optional[str] = None

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class Subscription(BaseModel):
    """
    A tracked recurring payment.

    CRITICAL: Only validated drafts become Subscription objects.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique subscription ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of this subscription"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the subscription was added"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Service name (e.g., Netflix)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    cost: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Cost per billing cycle")
    ]
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code (label only)"
    )
    billing_cycle: BillingCycle = Field(
        default=BillingCycle.MONTHLY,
    )
    category: SubscriptionCategory = Field(
        default=SubscriptionCategory.OTHER,
    )
    next_payment_date: date = Field(
        ...,
        description="Date of the next renewal"
    )
    website_url: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    icon_url: Optional[str] = Field(
        default=None,
        description="Preset icon id or URL of an uploaded icon"
    )
    is_active: bool = Field(
        default=True,
        description="Inactive subscriptions are hidden from the dashboard"
    )

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class Profile(BaseModel):
    """User profile, one per account."""
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(
        ...,
        min_length=1,
    )
    full_name: Optional[str] = Field(
        default=None,
        max_length=200,
    )
    email: Optional[str] = Field(
        default=None,
        max_length=320,
    )
    avatar_url: Optional[str] = Field(
        default=None,
        description="Public URL of the cropped avatar"
    )
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency preselected for new subscriptions"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
    )

    @property
    def display_name(self) -> str:
        """Name to show in headers and reports."""
        return self.full_name or self.email or ""

    @property
    def initial(self) -> str:
        """Avatar fallback letter."""
        source = self.full_name or self.email or "?"
        return source[0].upper()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields, formats)
    Stage 2: Semantic validation (logic checks)
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    # Stage results
    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )

    # Overall result
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def issues_for(self, field: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.field == field]
